from loguru import logger

from bamscript.engine import Engine, construct
from bamscript.errors import (
    BamScriptError, BootstrapError, CompileError, DefinitionError, EngineError, PredicateNotCallableError,
    PredicateNotFoundError, PredicateReturnedEmptyError, PredicateThrewError, ScriptError, SourceError,
    StepLimitError, TemplateError,
)
from bamscript.runtime import bootstrap
from bamscript.stream import FilterStats, filter_alignments

__version__ = "0.1"

# applications opt in with logger.enable("bamscript"); the CLI does
logger.disable("bamscript")
