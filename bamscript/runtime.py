"""Process-wide runtime setup and per-engine execution contexts."""

import math
import re
import threading

from loguru import logger

from bamscript.errors import BootstrapError
from bamscript.interpreter import Interpreter, Scope
from bamscript.parser import ScriptParser
from bamscript.values import UNDEFINED, NativeFunction, to_integer, to_number, to_string

_lock = threading.Lock()
_parser = None
_failure = None


def bootstrap():
    """ Build the script parser exactly once per process and return it.

    Safe to call from any thread, any number of times. A failed build is remembered and re-raised on
    every later call.
    """
    global _parser, _failure
    if _parser is not None:
        return _parser
    with _lock:
        if _failure is not None:
            raise BootstrapError("script runtime failed to initialize: {}".format(_failure)) from _failure
        if _parser is None:
            try:
                parser = ScriptParser()
                parser.build()
            except Exception as exc:
                _failure = exc
                raise BootstrapError("script runtime failed to initialize: {}".format(exc)) from exc
            _parser = parser
            logger.debug("Script runtime initialized")
    return _parser


class Context:
    """ One global scope plus the interpreter that runs code in it.

    Not thread-safe: a context belongs to whichever engine created it.
    """

    def __init__(self, step_limit=None):
        self.parser = bootstrap()
        self.globals = Scope()
        self.interpreter = Interpreter(self.globals, step_limit)
        install_standard_globals(self)

    def compile(self, source):
        """ Parse *source* into a program. Raises `SyntaxError`. """
        return self.parser.parse(source)

    def run(self, program):
        self.interpreter.execute_program(program)

    def get_global(self, name):
        return self.globals.get(name, UNDEFINED)

    def set_global(self, name, value, constant=False):
        self.globals[name] = value
        if constant:
            self.globals.constants.add(name)

    def call(self, function, args):
        return self.interpreter.run_function(function, args)


# --- Standard library available in every context ---

_INT_PREFIX_RE = re.compile(r"\s*([+-]?)(0[xX])?([0-9a-zA-Z]*)")
_FLOAT_PREFIX_RE = re.compile(r"\s*([+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?|[+-]?Infinity)")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def parse_int(value, radix):
    match = _INT_PREFIX_RE.match(to_string(value))
    sign, prefix, digits = match.groups()
    base = 10 if radix is UNDEFINED else to_integer(radix)
    if base == 0:
        base = 10
    if prefix:
        if radix is UNDEFINED or base == 16:
            base = 16
        else:
            digits = "0"
    if not 2 <= base <= 36:
        return math.nan
    valid = _DIGITS[:base]
    end = 0
    while end < len(digits) and digits[end].lower() in valid:
        end += 1
    if end == 0:
        return math.nan
    number = int(digits[:end], base)
    return -number if sign == "-" else number


def parse_float(value):
    match = _FLOAT_PREFIX_RE.match(to_string(value))
    if match is None:
        return math.nan
    text = match.group(1)
    if text.endswith("Infinity"):
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def _round(value):
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return math.floor(number + 0.5)


def _min(*values):
    numbers = [to_number(v) for v in values]
    if any(math.isnan(n) for n in numbers):
        return math.nan
    return min(numbers, default=math.inf)


def _max(*values):
    numbers = [to_number(v) for v in values]
    if any(math.isnan(n) for n in numbers):
        return math.nan
    return max(numbers, default=-math.inf)


def _finite_only(func):
    def wrapper(value):
        number = to_number(value)
        if math.isnan(number) or math.isinf(number):
            return number
        return func(number)
    return wrapper


def _sqrt(value):
    number = to_number(value)
    return math.nan if number < 0 or math.isnan(number) else math.sqrt(number)


def _log(value):
    number = to_number(value)
    if math.isnan(number) or number < 0:
        return math.nan
    return -math.inf if number == 0 else math.log(number)


def _pow(base, exponent):
    try:
        return math.pow(to_number(base), to_number(exponent))
    except (OverflowError, ValueError):
        return math.nan


def install_standard_globals(context):
    math_object = {
        "abs": NativeFunction("abs", lambda v: abs(to_number(v)), 1),
        "min": NativeFunction("min", _min),
        "max": NativeFunction("max", _max),
        "floor": NativeFunction("floor", _finite_only(math.floor), 1),
        "ceil": NativeFunction("ceil", _finite_only(math.ceil), 1),
        "round": NativeFunction("round", _round, 1),
        "sqrt": NativeFunction("sqrt", _sqrt, 1),
        "pow": NativeFunction("pow", _pow, 2),
        "log": NativeFunction("log", _log, 1),
        "PI": math.pi,
        "E": math.e,
    }
    builtins = {
        "Math": math_object,
        "parseInt": NativeFunction("parseInt", parse_int, 2),
        "parseFloat": NativeFunction("parseFloat", parse_float, 1),
        "isNaN": NativeFunction("isNaN", lambda v: math.isnan(to_number(v)), 1),
        "Number": NativeFunction("Number", to_number, 1),
        "String": NativeFunction("String", to_string, 1),
        "NaN": math.nan,
        "Infinity": math.inf,
        "undefined": UNDEFINED,
    }
    for name, value in builtins.items():
        context.set_global(name, value, constant=True)
