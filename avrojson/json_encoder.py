"""Encoding of generic values as Avro JSON.

Values are checked against the schema and laid out as Avro JSON by fastavro's JSON encoder:
unions other than ``null`` are wrapped in an object keyed by the branch name, and ``bytes``
and ``fixed`` values become strings with one code point per byte. This module renders the
result as text, either compact or in the pretty layout.
"""

import json
import math
from functools import partial
from io import StringIO
from typing import IO, Any, Callable, List, Tuple

import fastavro
from fastavro.io.json_encoder import AvroJSONEncoder
from fastavro.validation import ValidationError

from .data_stream import pack_float, unpack_float
from .exceptions import EncodeError

ROOT_SEPARATOR = "\n"
INDENT = "  "
# buffered output is handed to the stream once it grows past this many characters
BUFFER_SIZE = 8192

NON_FINITE = {math.inf: '"Infinity"', -math.inf: '"-Infinity"'}

# everything fastavro raises for a value that does not match its schema
WRITE_ERRORS = (ValidationError, ValueError, TypeError, KeyError, IndexError, OverflowError)


class Float32(float):
    """A value written for a ``float`` schema, rendered with 32-bit precision."""


class _Context:
    __slots__ = ("is_object", "entries")

    def __init__(self, is_object: bool):
        self.is_object = is_object
        self.entries = 0


class JsonGenerator:
    """Writes JSON tokens to a text buffer, tracking nesting to place separators.

    In pretty mode, objects are broken over lines and indented by two spaces per level, names
    are separated from values by ``" : "``, and arrays stay on one line as ``[ 1, 2 ]``.
    In compact mode no whitespace is written. Top-level values are separated by newlines.
    """

    def __init__(self, pretty: bool = False):
        self._pretty = pretty
        self._buffer = StringIO()
        self._stack: List[_Context] = []
        self._object_depth = 0
        self._root_values = 0

    @property
    def buffered(self) -> int:
        return self._buffer.tell()

    def drain(self) -> str:
        """Return the buffered text and empty the buffer."""
        text = self._buffer.getvalue()
        self._buffer.seek(0)
        self._buffer.truncate()
        return text

    def mark(self) -> Tuple[int, int]:
        return (self._buffer.tell(), self._root_values)

    def reset_to(self, mark: Tuple[int, int]):
        """Discard everything written since ``mark`` was taken at the top level."""
        position, root_values = mark
        self._buffer.seek(position)
        self._buffer.truncate()
        self._stack.clear()
        self._object_depth = 0
        self._root_values = root_values

    def _newline(self):
        self._buffer.write("\n" + INDENT * self._object_depth)

    def _before_value(self):
        if not self._stack:
            if self._root_values:
                self._buffer.write(ROOT_SEPARATOR)
            self._root_values += 1
            return
        context = self._stack[-1]
        if context.is_object:
            # the field name has already been written
            return
        if context.entries:
            self._buffer.write(", " if self._pretty else ",")
        elif self._pretty:
            self._buffer.write(" ")
        context.entries += 1

    def start_object(self):
        self._before_value()
        self._buffer.write("{")
        self._stack.append(_Context(is_object=True))
        self._object_depth += 1

    def field_name(self, name: str):
        context = self._stack[-1]
        if context.entries:
            self._buffer.write(",")
        if self._pretty:
            self._newline()
        self._buffer.write(json.dumps(name, ensure_ascii=False))
        self._buffer.write(" : " if self._pretty else ":")
        context.entries += 1

    def end_object(self):
        context = self._stack.pop()
        self._object_depth -= 1
        if self._pretty:
            if context.entries:
                self._newline()
            else:
                self._buffer.write(" ")
        self._buffer.write("}")

    def start_array(self):
        self._before_value()
        self._buffer.write("[")
        self._stack.append(_Context(is_object=False))

    def end_array(self):
        self._stack.pop()
        if self._pretty:
            self._buffer.write(" ")
        self._buffer.write("]")

    def raw_value(self, text: str):
        self._before_value()
        self._buffer.write(text)

    def string_value(self, value: str):
        self.raw_value(json.dumps(value, ensure_ascii=False))

    def tree(self, value: Any):
        """Write a tree of dicts, lists and scalars as produced by the Avro JSON encoder."""
        if value is None:
            self.raw_value("null")
        elif isinstance(value, bool):
            self.raw_value("true" if value else "false")
        elif isinstance(value, Float32):
            self.raw_value(float_text(value))
        elif isinstance(value, float):
            self.raw_value(double_text(value))
        elif isinstance(value, int):
            self.raw_value(str(value))
        elif isinstance(value, str):
            self.string_value(value)
        elif isinstance(value, dict):
            self.start_object()
            for key, item in value.items():
                self.field_name(key)
                self.tree(item)
            self.end_object()
        elif isinstance(value, list):
            self.start_array()
            for item in value:
                self.tree(item)
            self.end_array()
        else:
            raise EncodeError(f"cannot write {value!r} as JSON")


def double_text(value: float) -> str:
    """Return the JSON text of a double; non-finite values become strings."""
    if math.isnan(value):
        return '"NaN"'
    if math.isinf(value):
        return NON_FINITE[value]
    return repr(float(value))


def float_text(value: float) -> str:
    """Return the shortest JSON text that reads back as the same 32-bit float."""
    if math.isnan(value) or math.isinf(value):
        return double_text(value)
    [target] = unpack_float(pack_float(value))
    text = repr(target)
    for precision in range(1, 10):
        candidate = "%.*g" % (precision, target)
        if unpack_float(pack_float(float(candidate)))[0] == target:
            text = repr(float(candidate))
            break
    return text


class _TreeEncoder(AvroJSONEncoder):
    """Hands each finished Avro JSON tree to ``emit`` instead of dumping it to a stream."""

    def __init__(self, fo: Any, *, write_union_type: bool = True, emit: Callable[[Any], None]):
        super().__init__(fo, write_union_type=write_union_type)
        self._emit = emit

    def write_float(self, value):
        super().write_float(Float32(value))

    def write_double(self, value):
        super().write_double(float(value))

    def write_buffer(self):
        for record in self._records:
            self._emit(record)
        self._records = []


class JsonEncoder:
    """Writes generic values to a text stream as Avro JSON.

    One encoder is bound to one schema and one output stream, and is reused for every value
    written to that stream. Output is buffered; call :py:meth:`flush` after the last value.

    :param schema: the schema every written value conforms to, in any form accepted by
        :py:func:`fastavro.parse_schema`.
    :param output: the text stream to write to.
    :param pretty: if ``True``, values are indented over multiple lines.
    """

    def __init__(self, schema: Any, output: IO[str], pretty: bool = False):
        self._schema = fastavro.parse_schema(schema)
        self._output = output
        self._generator = JsonGenerator(pretty=pretty)

    @property
    def schema(self) -> Any:
        return self._schema

    def write(self, datum: Any):
        """Encode one value as a top-level JSON value.

        Records inside unions may be given as ``(name, value)`` tuples to pick the branch.

        :raises EncodeError: if the value does not conform to the schema. Nothing of the
            failed value is written.
        """
        trees: List[Any] = []
        try:
            fastavro.json_writer(
                None,
                self._schema,
                [datum],
                validator=True,
                encoder=partial(_TreeEncoder, emit=trees.append),
            )
        except WRITE_ERRORS as e:
            raise EncodeError(f"value does not match the schema: {e}") from e

        mark = self._generator.mark()
        try:
            for tree in trees:
                self._generator.tree(tree)
        except OverflowError as e:
            self._generator.reset_to(mark)
            raise EncodeError(f"value is out of range for float: {e}") from e
        except EncodeError:
            self._generator.reset_to(mark)
            raise
        if self._generator.buffered >= BUFFER_SIZE:
            self._output.write(self._generator.drain())

    def flush(self):
        """Write all buffered output to the output stream and flush it."""
        self._output.write(self._generator.drain())
        self._output.flush()


__all__ = ["Float32", "JsonEncoder", "JsonGenerator", "double_text", "float_text"]
