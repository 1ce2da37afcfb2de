"""Loading of quiz definition files.

Definitions are TOML by default. Files ending in ``.yaml`` or ``.yml``
are parsed with PyYAML instead.
"""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import DefinitionFormatError, DefinitionIOError

logger = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass(frozen=True)
class QuizDefinition:
    """A parsed quiz definition."""

    name: str
    path: Path
    content: dict[str, Any]


def quiz_name(path: str | Path) -> str:
    """Derive a quiz's logical name from its file name.

    >>> quiz_name("quizzes/geo.toml")
    'geo'
    """
    return Path(path).stem


def load_definition(base_dir: str | Path, rel_path: str | Path) -> QuizDefinition:
    """Load a quiz definition relative to a document's directory.

    Args:
        base_dir: Directory containing the referencing document.
        rel_path: Path of the definition, relative to ``base_dir``.

    Returns:
        The loaded definition.

    Raises:
        DefinitionIOError: If the file cannot be read.
        DefinitionFormatError: If the content is not valid structured data.
    """
    path = Path(base_dir) / rel_path

    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise DefinitionIOError(f"Cannot read quiz file {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise DefinitionFormatError(f"Quiz file {path} is not UTF-8: {e}") from e

    if path.suffix.lower() in YAML_SUFFIXES:
        content = _parse_yaml(text, path)
    else:
        content = _parse_toml(text, path)

    logger.debug("Loaded quiz definition %s", path)
    return QuizDefinition(name=quiz_name(rel_path), path=path, content=content)


def _parse_toml(text: str, path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise DefinitionFormatError(f"Invalid TOML in {path}: {e}") from e


def _parse_yaml(text: str, path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DefinitionFormatError(f"Invalid YAML in {path}: {e}") from e

    # An empty document is an empty table, as in TOML
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DefinitionFormatError(
            f"Quiz file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data
