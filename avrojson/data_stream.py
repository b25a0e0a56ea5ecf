import struct
from typing import IO, Optional

from .exceptions import BlockSizeLimitExceeded, InvalidBlock

# Avoid the overhead of parsing struct strings every time we need to pack or unpack
unpack_float = struct.Struct("<f").unpack
pack_float = struct.Struct("<f").pack

# Lengths read from a file are satisfied this many bytes at a time, so a corrupt length
# fails on the short read instead of allocating its whole size up front.
READ_CHUNK_SIZE = 64 * 1024


class ReadDataStream:
    """Hands the bytes of a container file to the decoder, counting what was consumed.

    Every read is checked against ``length_limit`` and then filled in chunks. A read that
    runs into the end of the stream returns the bytes that were available, and the decoder
    treats the short result as the end of the file.

    :param stream: the binary stream to read from.
    :param length_limit: the largest read allowed, or ``None`` for no limit.
    :param prefix: bytes already taken from ``stream`` that are to be read again first.
    """

    def __init__(self, stream: IO[bytes], length_limit: Optional[int], prefix: bytes = b""):
        self._count = 0
        self._stream = stream
        self._length_limit = length_limit
        self._prefix = prefix

    @property
    def count(self) -> int:
        return self._count

    def read(self, length: int) -> bytes:
        if length == 0:
            return b""
        if length < 0:
            raise InvalidBlock(f"negative length {length} read from the file")
        if self._length_limit is not None and length > self._length_limit:
            raise BlockSizeLimitExceeded(length, self._length_limit)

        chunks = []
        remaining = length
        if self._prefix:
            chunks.append(self._prefix[:remaining])
            self._prefix = self._prefix[remaining:]
            remaining -= len(chunks[0])
        while remaining > 0:
            chunk = self._stream.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        data = b"".join(chunks)
        self._count += len(data)
        return data
