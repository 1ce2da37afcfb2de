"""quizembed - Embed quiz definitions into Markdown books."""

__version__ = "0.1.0"

from .config import PreprocessorConfig, load_config
from .errors import (
    ConfigError,
    DefinitionFormatError,
    DefinitionIOError,
    EncodeError,
    QuizError,
)
from .rewriter import DocumentUnit, process_file, rewrite_document, rewrite_markdown

__all__ = [
    "PreprocessorConfig",
    "load_config",
    "QuizError",
    "DefinitionIOError",
    "DefinitionFormatError",
    "EncodeError",
    "ConfigError",
    "DocumentUnit",
    "rewrite_document",
    "rewrite_markdown",
    "process_file",
    "__version__",
]
