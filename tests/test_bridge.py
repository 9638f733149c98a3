import array

import numpy as np
import pytest

from bamscript.bridge import TagType, TypedValue, cigar_to_script, to_script, typed_value
from bamscript.proxy import CigarOp

scalar_tests = {
    (-5, "c"): -5,
    (200, "C"): 200,
    (-300, "s"): -300,
    (60000, "S"): 60000,
    (-70000, "i"): -70000,
    (4000000000, "I"): 4000000000,
    (1.5, "f"): 1.5,
    (2.25, "d"): 2.25,
    ("x", "A"): "x",
    (b"y", "A"): "y",
    (ord("z"), "A"): "z",
    (b"\xff", "A"): "�",
    ("hello", "Z"): "hello",
    (b"caf\xc3\xa9", "Z"): "café",
    ("1AE301", "H"): "1AE301",
}


@pytest.mark.parametrize("pair", scalar_tests.keys())
def test_scalars(pair):
    result = to_script(typed_value(*pair))
    assert result == scalar_tests[pair]
    assert type(result) is type(scalar_tests[pair])


array_tests = [
    (array.array("b", [-1, 0, 1]), TagType.INT8, [-1, 0, 1]),
    (array.array("B", [0, 255]), TagType.UINT8, [0, 255]),
    (array.array("h", [-32768, 7]), TagType.INT16, [-32768, 7]),
    (array.array("H", [65535, 1]), TagType.UINT16, [65535, 1]),
    (array.array("i", [-2, 3]), TagType.INT32, [-2, 3]),
    (array.array("I", [4294967295]), TagType.UINT32, [4294967295]),
    (array.array("f", [0.5, 1.25]), TagType.FLOAT, [0.5, 1.25]),
    (np.array([3, 2, 1], dtype=np.uint16), TagType.UINT16, [3, 2, 1]),
    ([1, 2, 3], TagType.INT32, [1, 2, 3]),
    ([1.5, 2], TagType.FLOAT, [1.5, 2.0]),
]


@pytest.mark.parametrize("value, subtype, expected", array_tests)
def test_arrays(value, subtype, expected):
    typed = typed_value(value, "B")
    assert typed.subtype is subtype
    result = to_script(typed)
    assert result == expected
    assert all(type(v) in (int, float) for v in result)


def test_array_subtype_override():
    typed = typed_value([255, 1], "B", subtype="C")
    assert typed.subtype is TagType.UINT8
    assert to_script(typed) == [255, 1]


def test_two_letter_array_code():
    typed = typed_value(array.array("H", [7, 8]), "BS")
    assert typed.tag_type is TagType.ARRAY
    assert typed.subtype is TagType.UINT16
    assert to_script(typed) == [7, 8]


def test_array_requires_numeric_subtype():
    with pytest.raises(ValueError):
        TypedValue(TagType.ARRAY, [1], TagType.STRING)


def test_every_encoding_converts():
    samples = {TagType.CHAR: "a", TagType.STRING: "s", TagType.HEX: "00", TagType.ARRAY: [1]}
    for tag_type in TagType:
        typed = typed_value(samples.get(tag_type, 1), tag_type.value)
        to_script(typed)


def test_cigar_to_script():
    ops = [CigarOp(4, 2), CigarOp(0, 5), CigarOp(3, 100)]
    assert cigar_to_script(ops) == [
        {"op": "SoftClip", "length": 2, "consumes_ref": False, "consumes_query": True},
        {"op": "Match", "length": 5, "consumes_ref": True, "consumes_query": True},
        {"op": "RefSkip", "length": 100, "consumes_ref": True, "consumes_query": False},
    ]
