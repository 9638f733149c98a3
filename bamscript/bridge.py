"""Conversion of typed alignment tag values and CIGAR operations into script values."""

import array
import enum
from collections import namedtuple

import numpy as np


class TagType(enum.Enum):
    """ SAM optional-field value encodings. """
    INT8 = "c"
    UINT8 = "C"
    INT16 = "s"
    UINT16 = "S"
    INT32 = "i"
    UINT32 = "I"
    FLOAT = "f"
    DOUBLE = "d"
    CHAR = "A"
    STRING = "Z"
    HEX = "H"
    ARRAY = "B"


#: Element dtypes of ``B`` arrays, keyed by element type
ARRAY_DTYPES = {
    TagType.INT8: np.int8,
    TagType.UINT8: np.uint8,
    TagType.INT16: np.int16,
    TagType.UINT16: np.uint16,
    TagType.INT32: np.int32,
    TagType.UINT32: np.uint32,
    TagType.FLOAT: np.float32,
}

# array.array typecodes as pysam hands them back for B tags
_TYPECODE_SUBTYPES = {
    "b": TagType.INT8,
    "B": TagType.UINT8,
    "h": TagType.INT16,
    "H": TagType.UINT16,
    "i": TagType.INT32,
    "I": TagType.UINT32,
    "l": TagType.INT32,
    "L": TagType.UINT32,
    "f": TagType.FLOAT,
    "d": TagType.FLOAT,
}

_DTYPE_SUBTYPES = {np.dtype(dtype): tag_type for tag_type, dtype in ARRAY_DTYPES.items()}


class TypedValue(namedtuple("TypedValue", ["tag_type", "value", "subtype"])):
    """ A tag value together with its encoding; *subtype* is the element type of arrays, otherwise None. """
    __slots__ = ()

    def __new__(cls, tag_type, value, subtype=None):
        if tag_type is TagType.ARRAY and subtype not in ARRAY_DTYPES:
            raise ValueError("array tag values need an integer or float element type, got {}".format(subtype))
        return super(TypedValue, cls).__new__(cls, tag_type, value, subtype)


def _infer_subtype(value):
    if isinstance(value, array.array):
        return _TYPECODE_SUBTYPES[value.typecode]
    if isinstance(value, np.ndarray):
        return _DTYPE_SUBTYPES.get(value.dtype, TagType.FLOAT if value.dtype.kind == "f" else TagType.INT32)
    if any(isinstance(v, float) for v in value):
        return TagType.FLOAT
    return TagType.INT32


def typed_value(value, code, subtype=None):
    """ Build a `TypedValue` from a ``(value, type code)`` pair as returned by
    ``AlignedSegment.get_tag(tag, with_value_type=True)``.

    For ``B`` arrays the element type is taken from *subtype* if given (a type code or `TagType`), then from
    a two-letter code such as ``"BS"``, otherwise from the container.
    """
    if len(code) == 2 and code[0] == "B":
        code, subtype = "B", subtype or code[1]
    tag_type = TagType(code)
    if tag_type is TagType.ARRAY:
        if subtype is None:
            subtype = _infer_subtype(value)
        elif not isinstance(subtype, TagType):
            subtype = TagType(subtype)
        return TypedValue(tag_type, value, subtype)
    return TypedValue(tag_type, value)


def _integer(typed):
    return int(typed.value)


def _floating(typed):
    return float(typed.value)


def _char(typed):
    value = typed.value
    if isinstance(value, int):
        value = bytes([value & 0xFF])
    if isinstance(value, (bytes, bytearray)):
        return bytes(value[:1]).decode("utf-8", errors="replace")
    return str(value)[:1]


def _text(typed):
    value = typed.value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _array(typed):
    # tolist() widens fixed-width elements to Python int / float
    return np.asarray(typed.value, dtype=ARRAY_DTYPES[typed.subtype]).tolist()


_CONVERTERS = {
    TagType.INT8: _integer,
    TagType.UINT8: _integer,
    TagType.INT16: _integer,
    TagType.UINT16: _integer,
    TagType.INT32: _integer,
    TagType.UINT32: _integer,
    TagType.FLOAT: _floating,
    TagType.DOUBLE: _floating,
    TagType.CHAR: _char,
    TagType.STRING: _text,
    TagType.HEX: _text,
    TagType.ARRAY: _array,
}

assert set(_CONVERTERS) == set(TagType), "every tag encoding needs a converter"


def to_script(typed):
    """ Convert a `TypedValue` into a script value. Total over `TagType`. """
    return _CONVERTERS[typed.tag_type](typed)


def cigar_to_script(ops):
    """ Materialize CIGAR operations as a fresh array of plain script objects. """
    return [{"op": op.label, "length": op.length,
             "consumes_ref": op.consumes_reference, "consumes_query": op.consumes_query}
            for op in ops]
