class BamScriptError(Exception):
    pass


class BootstrapError(BamScriptError):
    """ The scripting runtime could not be initialized. Nothing can be constructed afterwards. """


class ScriptError(BamScriptError):
    """ An error raised inside a running script, either by the interpreter or by a `throw` statement.

    *kind* mirrors the script-side error class name, *value* is whatever was thrown.
    """

    def __init__(self, kind, message, value=None):
        super(ScriptError, self).__init__("{}: {}".format(kind, message))
        self.kind = kind
        self.message = message
        self.value = message if value is None else value


class StepLimitError(ScriptError):

    def __init__(self, limit):
        super(StepLimitError, self).__init__("RangeError", "step limit of {} exceeded".format(limit))
        self.limit = limit


class EngineError(BamScriptError):
    pass


# Construction errors

class SourceError(EngineError):
    pass


class CompileError(EngineError):
    pass


class DefinitionError(EngineError):
    pass


class PredicateNotFoundError(EngineError):
    pass


class PredicateNotCallableError(EngineError):
    pass


class TemplateError(EngineError):
    pass


# Evaluation errors

class PredicateThrewError(EngineError):
    pass


class PredicateReturnedEmptyError(EngineError):
    pass
