"""Names of the codecs and reserved metadata keys defined by the
`Avro Specification <https://avro.apache.org/docs/current/specification/>`_.
"""


class Codec:
    """Well-known block compression codecs."""

    NULL = "null"
    DEFLATE = "deflate"
    SNAPPY = "snappy"
    ZSTANDARD = "zstandard"
    BZIP2 = "bzip2"
    XZ = "xz"
    LZ4 = "lz4"


# codecs whose libraries are declared dependencies of this package
SUPPORTED_CODECS = frozenset(
    [Codec.NULL, Codec.DEFLATE, Codec.ZSTANDARD, Codec.BZIP2, Codec.XZ, Codec.LZ4]
)


class MetadataKey:
    """Metadata keys reserved for use by Avro."""

    SCHEMA = "avro.schema"
    CODEC = "avro.codec"
