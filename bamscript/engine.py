import threading

from loguru import logger

from bamscript.compiler import compile_filter_function, make_filter_source
from bamscript.errors import (
    EngineError, PredicateReturnedEmptyError, PredicateThrewError, ScriptError, TemplateError,
)
from bamscript.helpers import install_helpers
from bamscript.proxy import HEADER_FIELD, RECORD_FIELD, make_aln_template
from bamscript.runtime import Context
from bamscript.values import EMPTY, to_boolean


class Engine:
    """
    Compiled filter expression plus the single alignment proxy it is evaluated against.

    *expression* is either a boolean expression::

        aln.mapq > 10 && aln.qname.startsWith('q23')

    or a function body with an explicit ``return``::

        return aln.mapq > 10 && hasFlag(aln.flag, 0x2);

    An engine belongs to the thread that built it. Parallel workers each construct their own.
    """
    __slots__ = ["expression", "context", "filter_fn", "aln", "_owner"]

    def __init__(self, expression, step_limit=None):
        self.expression = expression
        self.context = Context(step_limit=step_limit)
        self.filter_fn = compile_filter_function(self.context, make_filter_source(expression))
        try:
            self.aln = make_aln_template().new_instance()
        except Exception as exc:
            raise TemplateError("failed to create aln object: {}".format(exc)) from exc
        install_helpers(self.context)
        self._owner = threading.get_ident()
        logger.debug("Filter engine ready for expression {!r}", expression)

    def evaluate(self, record, header):
        """ Run the filter on one alignment.

        *record* and *header* are only referenced for the duration of the call; the caller may reuse the
        record's storage as soon as this returns.
        """
        if threading.get_ident() != self._owner:
            raise EngineError("filter engine used from a thread other than the one that created it")
        aln = self.aln
        aln.set_internal_field(HEADER_FIELD, header)
        aln.set_internal_field(RECORD_FIELD, record)
        try:
            result = self.context.call(self.filter_fn, [aln])
        except ScriptError as exc:
            raise PredicateThrewError("filter() threw: {}".format(exc)) from exc
        finally:
            aln.set_internal_field(HEADER_FIELD, None)
            aln.set_internal_field(RECORD_FIELD, None)
        if result is EMPTY:
            raise PredicateReturnedEmptyError("filter() returned empty")
        return to_boolean(result)

    record_passes = evaluate

    def __repr__(self):
        return "Engine({!r})".format(self.expression)


def construct(expression, step_limit=None):
    return Engine(expression, step_limit=step_limit)
