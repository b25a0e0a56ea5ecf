import json
from io import BytesIO
from typing import Any, Callable, Iterable, List, Tuple, Union

import fastavro
import pytest

from avrojson.reader import MAGIC

USERS_SCHEMA = json.dumps(
    {
        "type": "record",
        "name": "User",
        "fields": [
            {"name": "id", "type": "int"},
            {"name": "name", "type": "string"},
        ],
    }
)
USERS = [
    {"id": 1, "name": "a"},
    {"id": 2, "name": "b"},
    {"id": 3, "name": "c"},
]

SYNC_MARKER = bytes(range(16))


class CloseCountingBytesIO(BytesIO):
    """A BytesIO that records how many times it was closed."""

    def __init__(self, *args: Any):
        super().__init__(*args)
        self.close_count = 0

    def close(self):
        self.close_count += 1
        super().close()


def encode_long(value: int) -> bytes:
    """Zig-zag varint, for hand-built headers."""
    value = (value << 1) ^ (value >> 63)
    out = bytearray()
    while value & ~0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def make_header(entries: List[Tuple[bytes, bytes]]) -> bytes:
    """A container header holding the given metadata entries and no data blocks."""
    data = MAGIC + encode_long(len(entries))
    for key, value in entries:
        data += encode_long(len(key)) + key + encode_long(len(value)) + value
    return data + encode_long(0) + SYNC_MARKER


def write_container(schema: Union[str, dict], values: Iterable[Any], **kwargs: Any) -> bytes:
    output = BytesIO()
    kwargs.setdefault("sync_marker", SYNC_MARKER)
    if isinstance(schema, str):
        schema = json.loads(schema)
    fastavro.writer(output, fastavro.parse_schema(schema), list(values), **kwargs)
    return output.getvalue()


@pytest.fixture
def make_container() -> Callable[..., bytes]:
    return write_container


@pytest.fixture
def users_container() -> bytes:
    return write_container(USERS_SCHEMA, USERS)
