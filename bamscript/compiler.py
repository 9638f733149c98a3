from loguru import logger

from bamscript.errors import (
    CompileError, DefinitionError, PredicateNotCallableError, PredicateNotFoundError, ScriptError, SourceError,
)
from bamscript.globals import PREDICATE_NAME, PROXY_NAME, SUGAR
from bamscript.values import UNDEFINED, is_callable


def make_filter_source(expression):
    """ Build the script defining ``filter(aln)`` from a user expression or function body.

    ``and`` / ``or`` surrounded by spaces are replaced textually, string literals included. Text that
    does not mention ``return`` anywhere is wrapped as ``return (<text>);``.
    """
    if not isinstance(expression, str):
        raise SourceError("filter expression must be text, got {}".format(type(expression).__name__))
    for word, operator in SUGAR:
        expression = expression.replace(word, operator)
    if "return" in expression:
        body = expression
    else:
        # newline keeps a trailing // comment from swallowing the closing parenthesis
        body = "return ({}\n);".format(expression)
    return "function {}({}) {{\n{}\n}}\n".format(PREDICATE_NAME, PROXY_NAME, body)


def compile_filter_function(context, source):
    """ Run *source* in *context* and return the ``filter`` function it defines. """
    if not isinstance(source, str) or "\x00" in source:
        raise SourceError("failed to create script source from filter expression")
    try:
        program = context.compile(source)
    except SyntaxError as exc:
        raise CompileError("failed to compile filter expression: {}".format(exc)) from exc
    try:
        context.run(program)
    except ScriptError as exc:
        raise DefinitionError("failed to run filter definition: {}".format(exc)) from exc

    function = context.get_global(PREDICATE_NAME)
    if function is UNDEFINED:
        raise PredicateNotFoundError("global '{}' not found after running filter definition".format(PREDICATE_NAME))
    if not is_callable(function):
        raise PredicateNotCallableError("global '{}' is not a function".format(PREDICATE_NAME))
    logger.debug("Compiled filter function from {} characters of source", len(source))
    return function
