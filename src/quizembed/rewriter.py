"""Markdown rewriting for quizembed.

Parses a document into markdown-it tokens, replaces every text token
that is exactly a ``{{#quiz <path>}}`` directive with an inline HTML
token holding the quiz placeholder, and renders the tokens back to
Markdown with mdformat.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdformat.renderer import MDRenderer

from .config import PreprocessorConfig
from .directive import DirectiveMatch, match_directive
from .encoder import encode_metadata
from .errors import QuizError
from .loader import load_definition
from .placeholder import build_placeholder

logger = logging.getLogger(__name__)


@dataclass
class DocumentUnit:
    """One document of a book: its Markdown content and source path."""

    content: str
    path: Path | None = None

    @property
    def directory(self) -> Path:
        """Directory that relative quiz paths are resolved against."""
        if self.path is None:
            return Path(".")
        return Path(self.path).parent


@lru_cache(maxsize=1)
def _parser() -> MarkdownIt:
    # store_labels keeps reference-style links intact when rendering back
    return MarkdownIt("commonmark", {"store_labels": True})


def parse_markdown(text: str) -> tuple[list[Token], dict]:
    """Parse Markdown into a flat token list and its parser environment."""
    env: dict = {}
    tokens = _parser().parse(text, env)
    return tokens, env


def render_markdown(tokens: Iterable[Token], env: dict) -> str:
    """Render tokens back to Markdown."""
    return MDRenderer().render(list(tokens), _parser().options, env)


def iter_text_tokens(tokens: Iterable[Token]) -> Iterator[Token]:
    """Yield the text tokens directly inside each inline token."""
    for token in tokens:
        if token.type == "inline" and token.children:
            for child in token.children:
                if child.type == "text":
                    yield child


def find_directives(markdown: str) -> list[DirectiveMatch]:
    """List every directive in a Markdown document, in document order."""
    tokens, _env = parse_markdown(markdown)
    found = []
    for token in iter_text_tokens(tokens):
        match = match_directive(token.content)
        if match is not None:
            found.append(match)
    return found


def expand_directive(
    match: DirectiveMatch,
    chapter_dir: Path,
    config: PreprocessorConfig,
    source: Path | None = None,
) -> str:
    """Load the quiz a directive refers to and render its placeholder.

    Args:
        match: The matched directive.
        chapter_dir: Directory of the document containing the directive.
        config: Run configuration.
        source: Source path of the document, used in error messages.

    Returns:
        Placeholder markup.

    Raises:
        QuizError: Any loading or encoding failure, re-raised with the
            document and directive in its message.
    """
    try:
        definition = load_definition(chapter_dir, match.path)
        metadata = encode_metadata(definition.content)
    except QuizError as e:
        where = source if source is not None else chapter_dir
        raise type(e)(f"{where}: {{{{#quiz {match.argument}}}}}: {e}") from e

    logger.debug("Expanding quiz %s from %s", definition.name, definition.path)
    return build_placeholder(definition.name, metadata, config).render()


def _rewrite_children(
    children: list[Token],
    chapter_dir: Path,
    config: PreprocessorConfig,
    source: Path | None,
) -> Iterator[Token]:
    for child in children:
        if child.type == "text":
            match = match_directive(child.content)
            if match is not None:
                html = expand_directive(match, chapter_dir, config, source)
                yield Token("html_inline", "", 0, content=html, level=child.level)
                continue
        yield child


def rewrite_tokens(
    tokens: Iterable[Token],
    chapter_dir: Path,
    config: PreprocessorConfig,
    source: Path | None = None,
) -> Iterator[Token]:
    """Lazily substitute directive tokens with placeholder tokens.

    Non-directive tokens are yielded unchanged and in order. Inline
    tokens containing a directive are yielded as copies; the input
    tokens are never modified.
    """
    for token in tokens:
        if token.type == "inline" and token.children:
            children = list(
                _rewrite_children(token.children, chapter_dir, config, source)
            )
            if any(a is not b for a, b in zip(children, token.children)):
                token = token.copy(children=children)
        yield token


def rewrite_document(
    unit: DocumentUnit, config: PreprocessorConfig | None = None
) -> str:
    """Expand every quiz directive in one document.

    Raises:
        QuizError: If any directive fails; no output is produced.
    """
    config = config or PreprocessorConfig()
    tokens, env = parse_markdown(unit.content)
    new_tokens = rewrite_tokens(tokens, unit.directory, config, source=unit.path)
    return render_markdown(new_tokens, env)


def rewrite_markdown(
    content: str,
    source_path: Path | None = None,
    config: PreprocessorConfig | None = None,
) -> str:
    """Expand every quiz directive in a Markdown string.

    Args:
        content: Markdown text.
        source_path: Path of the document; quiz paths are relative to
            its directory.
        config: Run configuration.

    Returns:
        Rewritten Markdown.
    """
    path = Path(source_path) if source_path is not None else None
    return rewrite_document(DocumentUnit(content, path), config)


def process_file(
    input_path: Path,
    output_path: Path,
    config: PreprocessorConfig | None = None,
) -> bool:
    """Process a single Markdown file.

    Args:
        input_path: Path to input Markdown file.
        output_path: Path to write output file.
        config: Run configuration.

    Returns:
        True if the file contained directives and was written, False if
        no changes were needed.

    Raises:
        QuizError: If reading, expanding or writing fails.
    """
    try:
        content = input_path.read_text(encoding="utf-8")
    except OSError as e:
        raise QuizError(f"Cannot read file {input_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise QuizError(f"File {input_path} is not UTF-8: {e}") from e

    tokens, env = parse_markdown(content)
    if not any(match_directive(t.content) for t in iter_text_tokens(tokens)):
        return False

    config = config or PreprocessorConfig()
    new_tokens = rewrite_tokens(tokens, input_path.parent, config, source=input_path)
    processed = render_markdown(new_tokens, env)

    # Ensure output directory exists
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        output_path.write_text(processed, encoding="utf-8")
    except OSError as e:
        raise QuizError(f"Cannot write file {output_path}: {e}") from e

    return True
