"""Sequential reading of Avro object container files."""

from io import BufferedReader, BytesIO, RawIOBase
from typing import IO, Any, Dict, Iterator, Optional, Union

import fastavro
from fastavro.schema import SchemaParseException

from .data_stream import ReadDataStream
from .exceptions import (
    EndOfFile,
    FormatError,
    InvalidBlock,
    InvalidHeader,
    InvalidMagic,
    InvalidSyncMarker,
    UnsupportedCodec,
)
from .well_known import SUPPORTED_CODECS

MAGIC = b"Obj\x01"
MAGIC_SIZE = 4

# everything fastavro raises for a header it cannot make sense of
HEADER_ERRORS = (
    FormatError,
    EOFError,
    ValueError,
    KeyError,
    TypeError,
    AttributeError,
    IndexError,
    SchemaParseException,
)


def read_magic(stream: IO[bytes]) -> bytes:
    magic = stream.read(MAGIC_SIZE)
    if magic != MAGIC:
        raise InvalidMagic(magic)
    return magic


class DataFileReader:
    """Reads values sequentially out of an Avro object container file.

    The header is read when the reader is constructed, so a stream that does not hold a
    container fails immediately, and the schema is available before any value is read.
    Decoding is done by :py:func:`fastavro.reader`; its errors are reported as
    :py:class:`~avrojson.exceptions.FormatError` subtypes.

    Records inside unions are returned as ``(name, value)`` tuples carrying the full name of
    the record type, so that a value can be written back with the branch it was read from.

    :param input: a filename or a binary stream to read from. The reader takes ownership of
        the stream and closes it in :py:meth:`close`.
    :param block_size_limit: An upper bound to the size in bytes of any length read from the
        file, data blocks included, defaulting to 4 GiB. If this reader encounters a greater
        length, it will throw an :py:class:`~avrojson.exceptions.BlockSizeLimitExceeded`
        error.  Setting to ``None`` removes the limit.
    """

    def __init__(
        self,
        input: Union[str, BytesIO, RawIOBase, BufferedReader, IO[bytes]],
        block_size_limit: Optional[int] = 4 * 2**30,
    ):
        if isinstance(input, str):
            self._raw: IO[bytes] = open(input, "rb")
        elif isinstance(input, RawIOBase):
            self._raw = BufferedReader(input)
        else:
            self._raw = input
        self._closed = False
        self._spent = False
        try:
            self._read_header(block_size_limit)
        except BaseException:
            self.close()
            raise

    def _read_header(self, block_size_limit: Optional[int]):
        magic = read_magic(self._raw)
        self._stream = ReadDataStream(self._raw, block_size_limit, prefix=magic)
        try:
            self._reader = fastavro.reader(self._stream, return_record_name=True)
        except HEADER_ERRORS as e:
            raise InvalidHeader(f"invalid file header: {e!r}") from e
        self._codec = self._reader.codec
        if self._codec not in SUPPORTED_CODECS:
            raise UnsupportedCodec(self._codec)

    @property
    def schema(self) -> Any:
        """The parsed schema every value in this file was written with."""
        return self._reader.writer_schema

    @property
    def metadata(self) -> Dict[str, str]:
        return dict(self._reader.metadata)

    @property
    def codec(self) -> str:
        return self._codec

    def get_meta(self, key: str) -> Optional[str]:
        """Return a metadata value, or ``None`` if the key is absent."""
        return self._reader.metadata.get(key)

    def _check_spent(self):
        if self._spent:
            raise RuntimeError("cannot iterate over a data file reader more than once")
        self._spent = True

    def _translate(self, error: Exception) -> FormatError:
        offset = self._stream.count
        if isinstance(error, EOFError):
            return EndOfFile(f"file ends inside a data block near offset {offset}")
        if isinstance(error, UnicodeDecodeError):
            return InvalidBlock(f"invalid UTF-8 in a string near offset {offset}: {error}")
        message = str(error)
        if isinstance(error, ValueError) and "sync" in message:
            return InvalidSyncMarker(f"invalid sync marker near offset {offset}")
        if isinstance(error, ValueError) and "install" in message:
            return UnsupportedCodec(self._codec)
        return InvalidBlock(f"corrupt data block near offset {offset}: {error!r}")

    @property
    def records(self) -> Iterator[Any]:
        """Returns the values in the file in order, decoding one at a time."""
        self._check_spent()
        values = iter(self._reader)
        while True:
            try:
                datum = next(values)
            except StopIteration:
                return
            except (FormatError, OSError):
                raise
            except Exception as e:
                raise self._translate(e) from e
            yield datum

    def __iter__(self) -> Iterator[Any]:
        return self.records

    def close(self):
        """Closes the underlying stream. Calling this more than once has no effect."""
        if self._closed:
            return
        self._closed = True
        self._raw.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "DataFileReader":
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any):
        self.close()


__all__ = ["DataFileReader", "MAGIC"]
