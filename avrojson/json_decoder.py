"""Decoding of Avro JSON text back into generic values."""

import json
import math
from typing import Any, Iterator, List

import fastavro
from fastavro.io.json_decoder import AvroJSONDecoder

from .data_stream import pack_float, unpack_float
from .exceptions import DecodeError

NON_FINITE = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}

READ_ERRORS = (ValueError, TypeError, KeyError, IndexError, AttributeError, OverflowError)


def _floating(value: Any) -> float:
    if isinstance(value, str) and value in NON_FINITE:
        return NON_FINITE[value]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise DecodeError(f"expected a number, found {value!r}")


class _AvroJsonDecoder(AvroJSONDecoder):
    """Reads floating point values the way the encoder writes them, non-finite ones as strings."""

    def read_float(self):
        value = _floating(super().read_float())
        if math.isfinite(value):
            [value] = unpack_float(pack_float(value))
        return value

    def read_double(self):
        return _floating(super().read_double())


def split_values(text: str) -> List[str]:
    """Split a document of concatenated JSON values into one compact line per value.

    Values may be separated by any amount of whitespace, so both compact and pretty-printed
    output can be split.
    """
    decoder = json.JSONDecoder()
    lines = []
    position = 0
    end = len(text)
    while True:
        while position < end and text[position].isspace():
            position += 1
        if position == end:
            return lines
        try:
            obj, position = decoder.raw_decode(text, position)
        except ValueError as e:
            raise DecodeError(f"invalid JSON at offset {position}: {e}") from e
        lines.append(json.dumps(obj))


class JsonDecoder:
    """Reads the sequence of Avro JSON values held in a text document.

    :param schema: the schema every value conforms to, in any form accepted by
        :py:func:`fastavro.parse_schema`.
    :param text: the document text.
    """

    def __init__(self, schema: Any, text: str):
        self._schema = fastavro.parse_schema(schema)
        self._text = text

    def __iter__(self) -> Iterator[Any]:
        lines = split_values(self._text)
        values = iter(fastavro.json_reader(lines, self._schema, decoder=_AvroJsonDecoder))
        while True:
            try:
                datum = next(values)
            except StopIteration:
                return
            except DecodeError:
                raise
            except READ_ERRORS as e:
                raise DecodeError(f"value does not match the schema: {e!r}") from e
            yield datum


__all__ = ["JsonDecoder", "split_values"]
