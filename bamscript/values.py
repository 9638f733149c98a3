"""Script value model and the conversions between script values.

null is ``None`` and undefined is `UNDEFINED`. Booleans, numbers and strings are the Python builtins,
arrays are lists and plain objects are dicts. Python ``bool`` is a subclass of ``int``, so every numeric
check here has to rule booleans out first.
"""

import math
import re


class _Sentinel:
    __slots__ = ["name"]

    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return self.name

    def __bool__(self):
        return False


UNDEFINED = _Sentinel("undefined")

#: Marks a host call that produced no completion value at all. A script function that finishes
#: without ``return`` yields `UNDEFINED`, not this.
EMPTY = _Sentinel("empty")

_NO_THIS = _Sentinel("no-this")


class NativeFunction:
    """ A Python callable exposed to scripts.

    *arity* is the number of script arguments *func* takes; calls pad missing arguments with `UNDEFINED`
    and drop extra ones. ``None`` passes the arguments through unchanged. A bound method also receives its
    ``this`` value as the first Python argument.
    """
    __slots__ = ["name", "func", "arity", "this"]

    def __init__(self, name, func, arity=None, this=_NO_THIS):
        self.name = name
        self.func = func
        self.arity = arity
        self.this = this

    def bind(self, this):
        return NativeFunction(self.name, self.func, self.arity, this)

    def invoke(self, args):
        if self.arity is not None:
            args = list(args[:self.arity]) + [UNDEFINED] * (self.arity - len(args))
        if self.this is _NO_THIS:
            return self.func(*args)
        return self.func(self.this, *args)

    def __repr__(self):
        return "<native function {}>".format(self.name)


class ScriptFunction:
    """ A function defined in script source, closing over the scope it was created in. """
    __slots__ = ["name", "params", "body", "closure"]

    def __init__(self, name, params, body, closure):
        self.name = name
        self.params = params
        self.body = body
        self.closure = closure

    def __repr__(self):
        return "<function {}({})>".format(self.name, ", ".join(self.params))


class ObjectTemplate:
    """ Blueprint for host objects: computed properties, methods and a fixed number of internal fields.

    Internal fields are opaque slots only Python code can see. Accessors are called with the instance
    each time the property is read, nothing is cached.
    """

    def __init__(self, internal_field_count=0):
        self.internal_field_count = internal_field_count
        self.accessors = dict()
        self.methods = dict()

    def set_accessor(self, name, getter):
        self.accessors[name] = getter

    def set(self, name, function):
        self.methods[name] = function

    def new_instance(self):
        return HostObject(self)


class HostObject:
    __slots__ = ["template", "internal_fields"]

    def __init__(self, template):
        self.template = template
        self.internal_fields = [None] * template.internal_field_count

    def set_internal_field(self, index, value):
        self.internal_fields[index] = value

    def get_internal_field(self, index):
        return self.internal_fields[index]

    def get(self, name):
        getter = self.template.accessors.get(name)
        if getter is not None:
            return getter(self)
        method = self.template.methods.get(name)
        if method is not None:
            return method.bind(self)
        return UNDEFINED

    def __repr__(self):
        return "<host object {}>".format(sorted(self.template.accessors))


# --- Type predicates and conversions ---

def is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_callable(value):
    return isinstance(value, (NativeFunction, ScriptFunction))


def type_of(value):
    if value is UNDEFINED:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_callable(value):
        return "function"
    return "object"


def to_boolean(value):
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


_DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\Z")
_INTEGER_RE = re.compile(r"[+-]?\d+\Z")
_HEX_RE = re.compile(r"0[xX][0-9a-fA-F]+\Z")


def _string_to_number(text):
    text = text.strip()
    if text == "":
        return 0
    if _INTEGER_RE.match(text):
        return int(text)
    if _DECIMAL_RE.match(text):
        return float(text)
    if _HEX_RE.match(text):
        return int(text, 16)
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    return math.nan


def to_number(value):
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, list):
        return _string_to_number(to_string(value))
    return math.nan


def to_integer(value):
    """ Truncate towards zero; NaN becomes 0 and infinities are kept. """
    number = to_number(value)
    if isinstance(number, int):
        return number
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return number
    return int(number)


def to_uint32(value):
    number = to_integer(value)
    if isinstance(number, float):
        return 0
    return number & 0xFFFFFFFF


def to_int32(value):
    number = to_uint32(value)
    return number - 0x100000000 if number & 0x80000000 else number


def number_to_string(number):
    if isinstance(number, int):
        return str(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if number.is_integer() and abs(number) < 1e21:
        return str(int(number))
    text = repr(number)
    if "e" in text:
        mantissa, exponent = text.split("e")
        text = "{}e{}{}".format(mantissa, "-" if exponent.startswith("-") else "+", exponent.lstrip("+-").lstrip("0"))
    return text


def to_string(value):
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return number_to_string(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if item is None or item is UNDEFINED else to_string(item) for item in value)
    if is_callable(value):
        return "function {}() {{ [native code] }}".format(getattr(value, "name", ""))
    return "[object Object]"


def to_primitive(value):
    if isinstance(value, (list, dict, HostObject)) or is_callable(value):
        return to_string(value)
    return value


# --- Operators ---

def strict_equals(left, right):
    if is_number(left) and is_number(right):
        return left == right
    if type_of(left) != type_of(right):
        return False
    if left is None or right is None:
        return left is right
    if isinstance(left, (str, bool)):
        return left == right
    return left is right


def loose_equals(left, right):
    if (left is None or left is UNDEFINED) and (right is None or right is UNDEFINED):
        return True
    if left is None or left is UNDEFINED or right is None or right is UNDEFINED:
        return False
    if type_of(left) == type_of(right) or (is_number(left) and is_number(right)):
        return strict_equals(left, right)
    if isinstance(left, bool):
        return loose_equals(int(left), right)
    if isinstance(right, bool):
        return loose_equals(left, int(right))
    if is_number(left) and isinstance(right, str):
        return left == to_number(right)
    if isinstance(left, str) and is_number(right):
        return to_number(left) == right
    left_primitive, right_primitive = to_primitive(left), to_primitive(right)
    if left_primitive is left and right_primitive is right:
        return False
    return loose_equals(left_primitive, right_primitive)


def _compare(left, right):
    """ Returns None when the comparison is undefined (NaN involved). """
    left, right = to_primitive(left), to_primitive(right)
    if isinstance(left, str) and isinstance(right, str):
        return (left > right) - (left < right)
    left, right = to_number(left), to_number(right)
    if math.isnan(left) or math.isnan(right):
        return None
    return (left > right) - (left < right)


def _divide(left, right):
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1, right)
    return left / right


def _remainder(left, right):
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    if math.isinf(right):
        return left
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def add(left, right):
    left, right = to_primitive(left), to_primitive(right)
    if isinstance(left, str) or isinstance(right, str):
        return to_string(left) + to_string(right)
    return to_number(left) + to_number(right)


def binary_operation(op, left, right):
    if op == "+":
        return add(left, right)
    if op == "===":
        return strict_equals(left, right)
    if op == "!==":
        return not strict_equals(left, right)
    if op == "==":
        return loose_equals(left, right)
    if op == "!=":
        return not loose_equals(left, right)
    if op in ("<", ">", "<=", ">="):
        order = _compare(left, right)
        if order is None:
            return False
        return {"<": order < 0, ">": order > 0, "<=": order <= 0, ">=": order >= 0}[op]
    if op in ("&", "|", "^", "<<", ">>"):
        a, b = to_int32(left), to_int32(right)
        if op == "&":
            result = a & b
        elif op == "|":
            result = a | b
        elif op == "^":
            result = a ^ b
        elif op == "<<":
            result = a << (b & 31)
        else:
            return a >> (b & 31)
        return to_int32(result)
    if op == ">>>":
        return to_uint32(left) >> (to_uint32(right) & 31)
    a, b = to_number(left), to_number(right)
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if op == "/":
        return _divide(a, b)
    if op == "%":
        return _remainder(a, b)
    raise ValueError("unknown operator {}".format(op))


def unary_operation(op, value):
    if op == "!":
        return not to_boolean(value)
    if op == "-":
        return -to_number(value)
    if op == "+":
        return to_number(value)
    if op == "~":
        return ~to_int32(value)
    if op == "typeof":
        return type_of(value)
    raise ValueError("unknown operator {}".format(op))


# --- Built-in methods of primitive values ---

def _index_argument(value, length, default):
    """ Resolve a relative index argument the way ``slice`` does. """
    if value is UNDEFINED:
        return default
    index = to_integer(value)
    if index < 0:
        return max(length + index, 0)
    return min(index, length)


def _starts_with(text, search, position):
    start = 0 if position is UNDEFINED else max(to_integer(position), 0)
    return text.startswith(to_string(search), start)


def _ends_with(text, search, end_position):
    end = len(text) if end_position is UNDEFINED else max(to_integer(end_position), 0)
    return text[:end].endswith(to_string(search))


def _includes(text, search, position):
    start = 0 if position is UNDEFINED else max(to_integer(position), 0)
    return to_string(search) in text[start:]


def _index_of(text, search, position):
    start = 0 if position is UNDEFINED else max(to_integer(position), 0)
    return text.find(to_string(search), start)


def _last_index_of(text, search):
    return text.rfind(to_string(search))


def _slice(text, start, end):
    length = len(text)
    return text[_index_argument(start, length, 0):_index_argument(end, length, length)]


def _substring(text, start, end):
    length = len(text)
    first = min(max(to_integer(start), 0), length)
    last = length if end is UNDEFINED else min(max(to_integer(end), 0), length)
    first, last = min(first, last), max(first, last)
    return text[first:last]


def _split(text, separator, limit):
    if separator is UNDEFINED:
        parts = [text]
    elif to_string(separator) == "":
        parts = list(text)
    else:
        parts = text.split(to_string(separator))
    if limit is not UNDEFINED:
        parts = parts[:to_uint32(limit)]
    return parts


def _char_at(text, index):
    position = to_integer(index)
    if 0 <= position < len(text):
        return text[position]
    return ""


def _replace(text, pattern, replacement):
    return text.replace(to_string(pattern), to_string(replacement), 1)


STRING_METHODS = {
    "startsWith": NativeFunction("startsWith", _starts_with, 2),
    "endsWith": NativeFunction("endsWith", _ends_with, 2),
    "includes": NativeFunction("includes", _includes, 2),
    "indexOf": NativeFunction("indexOf", _index_of, 2),
    "lastIndexOf": NativeFunction("lastIndexOf", _last_index_of, 1),
    "slice": NativeFunction("slice", _slice, 2),
    "substring": NativeFunction("substring", _substring, 2),
    "toUpperCase": NativeFunction("toUpperCase", str.upper, 0),
    "toLowerCase": NativeFunction("toLowerCase", str.lower, 0),
    "trim": NativeFunction("trim", str.strip, 0),
    "split": NativeFunction("split", _split, 2),
    "charAt": NativeFunction("charAt", _char_at, 1),
    "replace": NativeFunction("replace", _replace, 2),
}


def _to_fixed(number, digits):
    return "{:.{}f}".format(number, 0 if digits is UNDEFINED else to_integer(digits))


NUMBER_METHODS = {
    "toFixed": NativeFunction("toFixed", _to_fixed, 1),
    "toString": NativeFunction("toString", number_to_string, 0),
}
