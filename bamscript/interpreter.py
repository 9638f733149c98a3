"""Tree-walking evaluator for parsed scripts."""

import re
from functools import partial

from bamscript.errors import ScriptError, StepLimitError
from bamscript.nodes import (
    Arrow, ArrayLiteral, Assign, Binary, Block, Break, Call, Conditional, Continue, Declare, ExprStatement,
    ForOf, FunctionDecl, If, Index, Literal, Logical, Member, Name, Return, Throw, Unary, While,
)
from bamscript.values import (
    NUMBER_METHODS, STRING_METHODS, UNDEFINED, HostObject, NativeFunction, ScriptFunction,
    binary_operation, is_number, strict_equals, to_boolean, to_integer, to_string, unary_operation,
)


class _ReturnSignal(Exception):

    def __init__(self, value):
        self.value = value


class _BreakSignal(Exception):
    pass


class _ContinueSignal(Exception):
    pass


class Scope(dict):
    """ Variables visible at one level of nesting; lookups fall through to *parent*. """
    __slots__ = ["parent", "constants"]

    def __init__(self, parent=None):
        super(Scope, self).__init__()
        self.parent = parent
        self.constants = set()

    def declare(self, name, value, kind="let"):
        if name in self and (kind != "var" or name in self.constants):
            raise ScriptError("SyntaxError", "Identifier '{}' has already been declared".format(name))
        self[name] = value
        if kind == "const":
            self.constants.add(name)

    def lookup(self, name):
        scope = self
        while scope is not None:
            if name in scope:
                return scope[name]
            scope = scope.parent
        raise ScriptError("ReferenceError", "{} is not defined".format(name))

    def assign(self, name, value):
        scope = self
        while scope is not None:
            if name in scope:
                if name in scope.constants:
                    raise ScriptError("TypeError", "Assignment to constant variable '{}'".format(name))
                scope[name] = value
                return
            scope = scope.parent
        raise ScriptError("ReferenceError", "{} is not defined".format(name))


_INDEX_RE = re.compile(r"0|[1-9][0-9]*")


def array_index(key):
    """ The element index *key* names, or None if it names some other property. """
    if is_number(key):
        if isinstance(key, float) and not key.is_integer():
            return None
        return int(key) if key >= 0 else None
    if not isinstance(key, str):
        key = to_string(key)
    return int(key) if _INDEX_RE.fullmatch(key) else None


def describe(node):
    """ Short source-like rendering of an expression for error messages. """
    if isinstance(node, Name):
        return node.name
    if isinstance(node, Member):
        return "{}.{}".format(describe(node.obj), node.name)
    if isinstance(node, Index):
        return "{}[...]".format(describe(node.obj))
    if isinstance(node, Call):
        return "{}(...)".format(describe(node.callee))
    return "expression"


class Interpreter:
    """ Evaluates statements and expressions against a global scope.

    *step_limit* bounds the number of statements and calls executed per top-level `run_function`;
    ``None`` means unbounded.
    """

    def __init__(self, global_scope, step_limit=None):
        self.globals = global_scope
        self.step_limit = step_limit
        self.steps = 0
        self._statements = {
            FunctionDecl: self.exec_function_decl,
            Return: self.exec_return,
            If: self.exec_if,
            Declare: self.exec_declare,
            ForOf: self.exec_for_of,
            While: self.exec_while,
            Break: self.exec_break,
            Continue: self.exec_continue,
            Throw: self.exec_throw,
            Block: self.exec_block,
            ExprStatement: self.exec_expression,
        }
        self._expressions = {
            Literal: self.eval_literal,
            Name: self.eval_name,
            ArrayLiteral: self.eval_array,
            Member: self.eval_member,
            Index: self.eval_index,
            Call: self.eval_call,
            Unary: self.eval_unary,
            Binary: self.eval_binary,
            Logical: self.eval_logical,
            Conditional: self.eval_conditional,
            Assign: self.eval_assign,
            Arrow: self.eval_arrow,
        }
        self.array_methods = {name: NativeFunction(name, partial(func, self), arity)
                              for name, (func, arity) in _ARRAY_METHODS.items()}

    def tick(self):
        self.steps += 1
        if self.step_limit is not None and self.steps > self.step_limit:
            raise StepLimitError(self.step_limit)

    # --- Entry points ---

    def execute_program(self, program):
        self.steps = 0
        try:
            self.exec_body(program.body, self.globals)
        except _ReturnSignal:
            raise ScriptError("SyntaxError", "Illegal return statement")
        except (_BreakSignal, _ContinueSignal):
            raise ScriptError("SyntaxError", "Illegal break or continue statement")

    def run_function(self, function, args):
        """ Call *function* from the host.

        Everything that goes wrong while the call runs surfaces as a `ScriptError`.
        """
        self.steps = 0
        try:
            return self._invoke(function, args, describe_as=getattr(function, "name", "function"))
        except ScriptError:
            raise
        except Exception as exc:
            raise ScriptError("TypeError", "{}: {}".format(type(exc).__name__, exc)) from exc

    def call(self, function, args):
        """ Call *function* from inside a running script. """
        return self._invoke(function, args, describe_as=getattr(function, "name", "callback"))

    def _invoke(self, function, args, describe_as):
        self.tick()
        if isinstance(function, NativeFunction):
            try:
                return function.invoke(list(args))
            except (TypeError, ValueError, OverflowError) as exc:
                raise ScriptError("TypeError", "{}: {}".format(describe_as, exc)) from exc
        if not isinstance(function, ScriptFunction):
            raise ScriptError("TypeError", "{} is not a function".format(describe_as))
        scope = Scope(function.closure)
        for i, param in enumerate(function.params):
            scope[param] = args[i] if i < len(args) else UNDEFINED
        try:
            self.exec_body(function.body, scope)
        except _ReturnSignal as signal:
            return signal.value
        except (_BreakSignal, _ContinueSignal):
            raise ScriptError("SyntaxError", "Illegal break or continue statement")
        except RecursionError:
            raise ScriptError("RangeError", "Maximum call stack size exceeded") from None
        return UNDEFINED

    # --- Statements ---

    def exec_body(self, statements, scope):
        # function declarations are visible from the start of their body
        for statement in statements:
            if isinstance(statement, FunctionDecl):
                self.exec_function_decl(statement, scope)
        for statement in statements:
            self.tick()
            self._statements[type(statement)](statement, scope)

    def exec_function_decl(self, node, scope):
        scope[node.name] = ScriptFunction(node.name, node.params, node.body, scope)

    def exec_return(self, node, scope):
        raise _ReturnSignal(UNDEFINED if node.value is None else self.evaluate(node.value, scope))

    def exec_if(self, node, scope):
        if to_boolean(self.evaluate(node.test, scope)):
            self.exec_nested(node.then, scope)
        elif node.otherwise is not None:
            self.exec_nested(node.otherwise, scope)

    def exec_nested(self, statement, scope):
        self.tick()
        self._statements[type(statement)](statement, scope)

    def exec_declare(self, node, scope):
        value = UNDEFINED if node.value is None else self.evaluate(node.value, scope)
        scope.declare(node.name, value, node.kind)

    def exec_for_of(self, node, scope):
        iterable = self.evaluate(node.iterable, scope)
        if isinstance(iterable, str):
            iterable = list(iterable)
        if not isinstance(iterable, list):
            raise ScriptError("TypeError", "{} is not iterable".format(describe(node.iterable)))
        for item in list(iterable):
            inner = Scope(scope)
            inner.declare(node.name, item, node.kind)
            try:
                self.exec_nested(node.body, inner)
            except _BreakSignal:
                break
            except _ContinueSignal:
                continue

    def exec_while(self, node, scope):
        while to_boolean(self.evaluate(node.test, scope)):
            try:
                self.exec_nested(node.body, scope)
            except _BreakSignal:
                break
            except _ContinueSignal:
                continue

    def exec_break(self, node, scope):
        raise _BreakSignal()

    def exec_continue(self, node, scope):
        raise _ContinueSignal()

    def exec_throw(self, node, scope):
        value = self.evaluate(node.value, scope)
        raise ScriptError("Error", "Uncaught {}".format(to_string(value)), value=value)

    def exec_block(self, node, scope):
        self.exec_body(node.body, Scope(scope))

    def exec_expression(self, node, scope):
        self.evaluate(node.expr, scope)

    # --- Expressions ---

    def evaluate(self, node, scope):
        return self._expressions[type(node)](node, scope)

    def eval_literal(self, node, scope):
        return node.value

    def eval_name(self, node, scope):
        return scope.lookup(node.name)

    def eval_array(self, node, scope):
        return [self.evaluate(item, scope) for item in node.items]

    def eval_member(self, node, scope):
        return self.get_property(self.evaluate(node.obj, scope), node.name, node.obj)

    def eval_index(self, node, scope):
        return self.get_property(self.evaluate(node.obj, scope), self.evaluate(node.key, scope), node.obj)

    def eval_call(self, node, scope):
        function = self.evaluate(node.callee, scope)
        args = [self.evaluate(arg, scope) for arg in node.args]
        return self.call_named(function, args, describe(node.callee))

    def call_named(self, function, args, name):
        return self._invoke(function, args, describe_as=name)

    def eval_unary(self, node, scope):
        if node.op == "typeof" and isinstance(node.operand, Name):
            try:
                operand = scope.lookup(node.operand.name)
            except ScriptError:
                return "undefined"
        else:
            operand = self.evaluate(node.operand, scope)
        return unary_operation(node.op, operand)

    def eval_binary(self, node, scope):
        return binary_operation(node.op, self.evaluate(node.left, scope), self.evaluate(node.right, scope))

    def eval_logical(self, node, scope):
        left = self.evaluate(node.left, scope)
        if to_boolean(left) == (node.op == "||"):
            return left
        return self.evaluate(node.right, scope)

    def eval_conditional(self, node, scope):
        if to_boolean(self.evaluate(node.test, scope)):
            return self.evaluate(node.then, scope)
        return self.evaluate(node.otherwise, scope)

    def eval_assign(self, node, scope):
        value = self.evaluate(node.value, scope)
        target = node.target
        if node.op != "=":
            value = binary_operation(node.op[0], self.evaluate(target, scope), value)
        if isinstance(target, Name):
            scope.assign(target.name, value)
            return value
        obj = self.evaluate(target.obj, scope)
        key = target.name if isinstance(target, Member) else self.evaluate(target.key, scope)
        self.set_property(obj, key, value, target.obj)
        return value

    def eval_arrow(self, node, scope):
        return ScriptFunction("(anonymous)", node.params, node.body, scope)

    # --- Properties ---

    def get_property(self, obj, key, node=None):
        if obj is UNDEFINED or obj is None:
            raise ScriptError("TypeError", "Cannot read properties of {} (reading '{}')".format(
                to_string(obj), to_string(key)))
        if isinstance(obj, (str, list)):
            index = array_index(key)
            if index is not None:
                return obj[index] if index < len(obj) else UNDEFINED
        name = to_string(key)
        if isinstance(obj, HostObject):
            return obj.get(name)
        if isinstance(obj, (str, list)):
            if name == "length":
                return len(obj)
            methods = STRING_METHODS if isinstance(obj, str) else self.array_methods
            method = methods.get(name)
            return UNDEFINED if method is None else method.bind(obj)
        if isinstance(obj, dict):
            return obj.get(name, UNDEFINED)
        if is_number(obj):
            method = NUMBER_METHODS.get(name)
            return UNDEFINED if method is None else method.bind(obj)
        return UNDEFINED

    def set_property(self, obj, key, value, node=None):
        index = array_index(key) if isinstance(obj, list) else None
        if isinstance(obj, dict):
            obj[to_string(key)] = value
        elif index is not None and index < len(obj):
            obj[index] = value
        elif index is not None and index == len(obj):
            obj.append(value)
        else:
            raise ScriptError("TypeError", "Cannot assign to property '{}' of {}".format(
                to_string(key), describe(node) if node is not None else "value"))


# --- Array methods; the interpreter is bound first so callbacks can run ---

def _array_includes(interp, items, search):
    return any(strict_equals(item, search) or (item != item and search != search) for item in items)


def _array_index_of(interp, items, search):
    for i, item in enumerate(items):
        if strict_equals(item, search):
            return i
    return -1


def _array_join(interp, items, separator):
    separator = "," if separator is UNDEFINED else to_string(separator)
    return separator.join("" if item is None or item is UNDEFINED else to_string(item) for item in items)


def _array_slice(interp, items, start, end):
    length = len(items)

    def resolve(value, default):
        if value is UNDEFINED:
            return default
        index = to_integer(value)
        return max(length + index, 0) if index < 0 else min(index, length)
    return items[resolve(start, 0):resolve(end, length)]


def _array_some(interp, items, callback):
    return any(to_boolean(interp.call(callback, [item, i, items])) for i, item in enumerate(list(items)))


def _array_every(interp, items, callback):
    return all(to_boolean(interp.call(callback, [item, i, items])) for i, item in enumerate(list(items)))


def _array_filter(interp, items, callback):
    return [item for i, item in enumerate(list(items)) if to_boolean(interp.call(callback, [item, i, items]))]


def _array_map(interp, items, callback):
    return [interp.call(callback, [item, i, items]) for i, item in enumerate(list(items))]


def _array_find(interp, items, callback):
    for i, item in enumerate(list(items)):
        if to_boolean(interp.call(callback, [item, i, items])):
            return item
    return UNDEFINED


def _array_for_each(interp, items, callback):
    for i, item in enumerate(list(items)):
        interp.call(callback, [item, i, items])
    return UNDEFINED


def _array_reduce(interp, items, callback, *initial):
    remaining = list(enumerate(items))
    if initial:
        accumulator = initial[0]
    elif remaining:
        accumulator = remaining.pop(0)[1]
    else:
        raise ScriptError("TypeError", "Reduce of empty array with no initial value")
    for i, item in remaining:
        accumulator = interp.call(callback, [accumulator, item, i, items])
    return accumulator


_ARRAY_METHODS = {
    "includes": (_array_includes, 1),
    "indexOf": (_array_index_of, 1),
    "join": (_array_join, 1),
    "slice": (_array_slice, 2),
    "some": (_array_some, 1),
    "every": (_array_every, 1),
    "filter": (_array_filter, 1),
    "map": (_array_map, 1),
    "find": (_array_find, 1),
    "forEach": (_array_for_each, 1),
    "reduce": (_array_reduce, None),
}
