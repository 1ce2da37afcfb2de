"""mdBook preprocessor driver.

mdBook runs a preprocessor with ``[context, book]`` JSON on stdin and
expects the processed book JSON on stdout. Chapters are rewritten in
place; everything else in the book is passed through untouched.
"""

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .config import ON_ERROR_SKIP, PreprocessorConfig, config_from_mapping
from .errors import ConfigError, QuizError
from .rewriter import DocumentUnit, rewrite_document

logger = logging.getLogger(__name__)

NAME = "quiz"
UNSUPPORTED_RENDERER = "not-supported"


def supports_renderer(renderer: str) -> bool:
    """Check whether the preprocessor should run for a renderer."""
    return renderer != UNSUPPORTED_RENDERER


def config_from_context(context: dict[str, Any]) -> PreprocessorConfig:
    """Resolve the ``[preprocessor.quiz]`` table of the book configuration.

    Raises:
        ConfigError: If the table is malformed.
    """
    book_config = context.get("config") or {}
    table = (book_config.get("preprocessor") or {}).get(NAME)
    if table is not None and not isinstance(table, dict):
        raise ConfigError(f"[preprocessor.{NAME}] must be a table")
    return config_from_mapping(table)


def source_dir(context: dict[str, Any]) -> Path:
    """Directory holding the book's Markdown sources."""
    root = Path(context.get("root", "."))
    src = ((context.get("config") or {}).get("book") or {}).get("src", "src")
    return root / src


def _book_items(book: dict[str, Any]) -> list:
    # mdBook 0.5 renamed "sections" to "items"
    if "items" in book:
        return book["items"]
    return book.get("sections", [])


def iter_chapters(items: list) -> Iterator[dict[str, Any]]:
    """Yield every chapter depth-first, skipping separators and part titles."""
    for item in items:
        if not isinstance(item, dict) or "Chapter" not in item:
            continue
        chapter = item["Chapter"]
        yield chapter
        yield from iter_chapters(chapter.get("sub_items", []))


def process_chapter(
    chapter: dict[str, Any], src_dir: Path, config: PreprocessorConfig
) -> bool:
    """Rewrite one chapter's content in place.

    Returns:
        True if the chapter was rewritten, False if it was skipped.

    Raises:
        QuizError: If expansion fails.
    """
    if not chapter.get("path"):
        logger.debug("Skipping draft chapter %r", chapter.get("name"))
        return False

    unit = DocumentUnit(chapter.get("content", ""), src_dir / chapter["path"])
    chapter["content"] = rewrite_document(unit, config)
    return True


def run(
    context: dict[str, Any],
    book: dict[str, Any],
    config: PreprocessorConfig | None = None,
) -> dict[str, Any]:
    """Expand quiz directives in every chapter of a book.

    Args:
        context: mdBook preprocessor context.
        book: mdBook book structure; modified in place.
        config: Configuration to use instead of the book's own table.

    Returns:
        The processed book.

    Raises:
        QuizError: On the first failing chapter, unless the configuration
            asks to skip failing chapters.
    """
    if config is None:
        config = config_from_context(context)
    src_dir = source_dir(context)

    processed = 0
    for chapter in iter_chapters(_book_items(book)):
        try:
            if process_chapter(chapter, src_dir, config):
                processed += 1
        except QuizError as e:
            if config.on_error != ON_ERROR_SKIP:
                raise
            logger.warning("Skipping chapter %s: %s", chapter.get("path"), e)

    logger.info("Processed %d chapter(s)", processed)
    return book
