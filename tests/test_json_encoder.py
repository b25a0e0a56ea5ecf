import json
import math
from io import StringIO
from typing import Any

import pytest
from conftest import USERS, USERS_SCHEMA

from avrojson.exceptions import EncodeError
from avrojson.json_encoder import JsonEncoder, double_text, float_text

NESTED_SCHEMA = {
    "type": "record",
    "name": "Nested",
    "fields": [
        {"name": "tags", "type": {"type": "array", "items": "string"}},
        {"name": "attrs", "type": {"type": "map", "values": "int"}},
        {"name": "maybe", "type": ["null", "string"]},
        {"name": "none", "type": {"type": "array", "items": "int"}},
        {"name": "inner", "type": {"type": "record", "name": "Empty", "fields": []}},
    ],
}
NESTED_VALUE = {"tags": ["x", "y"], "attrs": {"k": 1}, "maybe": "s", "none": [], "inner": {}}


def encode_all(schema: Any, values: list, pretty: bool = False) -> str:
    if isinstance(schema, str):
        schema = json.loads(schema)
    output = StringIO()
    encoder = JsonEncoder(schema, output, pretty=pretty)
    for value in values:
        encoder.write(value)
    encoder.flush()
    return output.getvalue()


def test_compact_records():
    assert (
        encode_all(USERS_SCHEMA, USERS)
        == '{"id":1,"name":"a"}\n{"id":2,"name":"b"}\n{"id":3,"name":"c"}'
    )


def test_pretty_record():
    assert encode_all(USERS_SCHEMA, USERS[:1], pretty=True) == '{\n  "id" : 1,\n  "name" : "a"\n}'


def test_pretty_records_are_separated_by_newlines():
    text = encode_all(USERS_SCHEMA, USERS[:2], pretty=True)
    assert text == '{\n  "id" : 1,\n  "name" : "a"\n}\n{\n  "id" : 2,\n  "name" : "b"\n}'


def test_pretty_nested():
    expected = (
        "{\n"
        '  "tags" : [ "x", "y" ],\n'
        '  "attrs" : {\n'
        '    "k" : 1\n'
        "  },\n"
        '  "maybe" : {\n'
        '    "string" : "s"\n'
        "  },\n"
        '  "none" : [ ],\n'
        '  "inner" : { }\n'
        "}"
    )
    assert encode_all(NESTED_SCHEMA, [NESTED_VALUE], pretty=True) == expected


def test_compact_nested():
    expected = '{"tags":["x","y"],"attrs":{"k":1},"maybe":{"string":"s"},"none":[],"inner":{}}'
    assert encode_all(NESTED_SCHEMA, [NESTED_VALUE]) == expected


@pytest.mark.parametrize(
    "schema_text,value,expected",
    [
        ('"null"', None, "null"),
        ('"boolean"', True, "true"),
        ('"int"', -7, "-7"),
        ('"long"', 2**62, "4611686018427387904"),
        ('"double"', 0.5, "0.5"),
        ('"double"', 1e20, "1e+20"),
        ('"double"', math.nan, '"NaN"'),
        ('"double"', -math.inf, '"-Infinity"'),
        ('"float"', math.inf, '"Infinity"'),
        ('"string"', 'say "héllo"\n', '"say \\"héllo\\"\\n"'),
        ('"bytes"', b"\x00\xff", '"\\u0000\xff"'),
        ('{"type": "fixed", "name": "F", "size": 2}', b"\x00\xff", '"\\u0000\xff"'),
        ('{"type": "enum", "name": "E", "symbols": ["A", "B"]}', "B", '"B"'),
        ('["null", "int"]', None, "null"),
        ('["int", "long"]', 2**40, '{"long":1099511627776}'),
        (
            '["null", {"type": "record", "name": "R", "namespace": "n.s",'
            ' "fields": [{"name": "a", "type": "int"}]}]',
            {"a": 1},
            '{"n.s.R":{"a":1}}',
        ),
    ],
)
def test_values(schema_text: str, value: Any, expected: str):
    assert encode_all(schema_text, [value]) == expected


def test_float_text():
    assert float_text(0.1) == "0.1"
    assert float_text(1.0) == "1.0"
    assert float_text(100.0) == "100.0"
    assert float_text(-2.5) == "-2.5"
    assert float_text(math.nan) == '"NaN"'


def test_double_text():
    assert double_text(0.1) == "0.1"
    assert double_text(1e20) == "1e+20"
    assert double_text(math.inf) == '"Infinity"'
    assert double_text(math.nan) == '"NaN"'


def test_failed_value_is_rolled_back():
    output = StringIO()
    encoder = JsonEncoder(json.loads(USERS_SCHEMA), output)
    encoder.write(USERS[0])
    with pytest.raises(EncodeError):
        encoder.write({"id": 2, "name": None})
    encoder.write(USERS[1])
    encoder.flush()
    assert output.getvalue() == '{"id":1,"name":"a"}\n{"id":2,"name":"b"}'


def test_large_output_is_written_as_it_goes():
    output = StringIO()
    encoder = JsonEncoder("string", output)
    encoder.write("x" * 10000)
    assert len(output.getvalue()) == 10002
    encoder.write("y")
    encoder.flush()
    assert output.getvalue().endswith('\n"y"')


def test_float_values_use_32_bit_precision():
    assert encode_all('{"type": "array", "items": "float"}', [[0.1, 3]]) == "[0.1,3.0]"
    assert encode_all('{"type": "array", "items": "double"}', [[0.1, 3]]) == "[0.1,3.0]"


def test_union_branch_named_by_tuple():
    schema = [
        {"type": "record", "name": "A", "fields": [{"name": "x", "type": "int"}]},
        {"type": "record", "name": "B", "fields": [{"name": "x", "type": "int"}]},
    ]
    assert encode_all(schema, [("B", {"x": 1}), {"x": 2}]) == '{"B":{"x":1}}\n{"A":{"x":2}}'


@pytest.mark.parametrize(
    "schema_text,value",
    [
        ('"int"', "1"),
        ('"int"', 2**31),
        ('"string"', None),
        ('{"type": "enum", "name": "E", "symbols": ["A"]}', "B"),
        ('{"type": "fixed", "name": "F", "size": 2}', b"abc"),
        ('["null", "int"]', "x"),
    ],
)
def test_value_not_matching_schema(schema_text: str, value: Any):
    with pytest.raises(EncodeError):
        encode_all(schema_text, [value])


def test_float_out_of_range_is_rolled_back():
    output = StringIO()
    encoder = JsonEncoder({"type": "array", "items": "float"}, output)
    encoder.write([1.5])
    with pytest.raises(EncodeError):
        encoder.write([2.5, 1e300])
    encoder.write([])
    encoder.flush()
    assert output.getvalue() == "[1.5]\n[]"
