from typing import Any


class AvroError(Exception):
    pass


class FormatError(AvroError):
    """Raised when the bytes of a container file do not follow the container layout."""

    pass


class InvalidMagic(FormatError):
    def __init__(self, bad_magic: Any):
        super().__init__(f"not a valid Avro data file, invalid magic: {bad_magic!r}")


class InvalidHeader(FormatError):
    pass


class InvalidSyncMarker(FormatError):
    pass


class InvalidBlock(FormatError):
    pass


class UnsupportedCodec(FormatError):
    def __init__(self, codec: str):
        self.codec = codec
        super().__init__(f"unsupported codec: {codec}")


class EndOfFile(FormatError):
    pass


class BlockSizeLimitExceeded(FormatError):
    def __init__(self, length: int, limit: int):
        super().__init__(f"length {length} read from the file exceeds limit {limit}")


class EncodeError(AvroError):
    """Raised if a value does not conform to the schema it is written with."""

    pass


class DecodeError(AvroError):
    """Raised if a JSON value does not conform to the schema it is read with."""

    pass
