"""Command-line interface for quizembed."""

import json
import logging
from pathlib import Path

import click
import yaml

from . import __version__
from .book import run, supports_renderer
from .config import (
    CONFIG_FILENAME,
    config_to_dict,
    create_default_config,
    find_config_file,
    load_config,
)
from .encoder import decode_metadata, encode_metadata
from .errors import QuizError
from .loader import load_definition
from .placeholder import extract_placeholders, has_placeholders
from .rewriter import find_directives, process_file

MARKDOWN_EXTENSIONS = {".md", ".markdown"}


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="quizembed")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx, verbose):
    """Embed quiz definitions into Markdown books.

    Replaces {{#quiz <file>}} directives with <quiz-placeholder> elements
    carrying the quiz as JSON. Run without a command, quizembed acts as an
    mdBook preprocessor: it reads [context, book] JSON from stdin and
    writes the processed book to stdout.

    \b
    Quick start:
      quizembed config init               # Create .quizembed.yaml
      quizembed check book/src -r         # Validate every referenced quiz
      quizembed expand book/src -r        # Write expanded copies to _expanded/
      quizembed supports html             # mdBook renderer check

    \b
    book.toml:
      [preprocessor.quiz]
      command = "quizembed"
      fullscreen = true
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    if ctx.invoked_subcommand is None:
        _run_preprocessor()


def _run_preprocessor() -> None:
    """Process an mdBook book from stdin to stdout."""
    try:
        with click.open_file("-") as stdin:
            context, book = json.load(stdin)
    except (json.JSONDecodeError, ValueError, TypeError) as e:
        raise click.ClickException(f"Invalid preprocessor input: {e}")

    logging.getLogger(__name__).debug(
        "Running for mdBook %s, renderer %s",
        context.get("mdbook_version"),
        context.get("renderer"),
    )

    try:
        book = run(context, book)
    except QuizError as e:
        raise click.ClickException(str(e))

    click.echo(json.dumps(book))


@main.command()
@click.argument("renderer")
def supports(renderer):
    """Tell mdBook whether RENDERER is supported.

    Exit code 0 = supported, 1 = not supported.
    """
    raise SystemExit(0 if supports_renderer(renderer) else 1)


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("-r", "--recursive", is_flag=True, help="Process directories recursively")
@click.option(
    "-d",
    "--directory",
    "output_dir",
    type=click.Path(),
    help="Output directory (default: _expanded/)",
)
@click.option("--in-place", is_flag=True, help="Rewrite files in place")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
@click.option("--log-endpoint", help="Quiz log endpoint (overrides config/env)")
@click.option(
    "--fullscreen/--no-fullscreen",
    default=None,
    help="Enable or disable fullscreen quizzes (overrides config/env)",
)
@click.option("--dry-run", is_flag=True, help="Show what would be done without changes")
def expand(
    paths,
    recursive,
    output_dir,
    in_place,
    config_path,
    log_endpoint,
    fullscreen,
    dry_run,
):
    """Expand quiz directives in Markdown files.

    \b
    Examples:
      quizembed expand chapter.md
      quizembed expand book/src -r -d build/src
      quizembed expand book/src -r --in-place --fullscreen
    """
    if not paths:
        raise click.UsageError("No files or directories specified")
    if in_place and output_dir:
        raise click.UsageError("--in-place cannot be combined with --directory")

    try:
        config = load_config(
            config_path=Path(config_path) if config_path else None,
            start_path=Path(paths[0]),
            log_endpoint_override=log_endpoint,
            fullscreen_override=fullscreen,
        )
    except QuizError as e:
        raise click.ClickException(str(e))

    files = _collect_files(paths, recursive)
    if not files:
        click.echo("No Markdown files found")
        return

    output_base = Path(output_dir) if output_dir else Path("_expanded")

    processed = 0
    skipped = 0
    failed = 0

    for input_path in files:
        if in_place:
            output_path = input_path
        else:
            output_path = _get_output_path(input_path, paths, output_base)

        rel_input = _relative_path(input_path)
        rel_output = _relative_path(output_path)

        if dry_run:
            count = _count_directives(input_path)
            if count:
                click.echo(
                    f"Would expand {count} quiz(zes): {rel_input} -> {rel_output}"
                )
                processed += 1
            else:
                skipped += 1
            continue

        try:
            changed = process_file(input_path, output_path, config)
        except QuizError as e:
            click.echo(f"Error processing {rel_input}: {e}", err=True)
            failed += 1
            continue

        if changed:
            click.echo(f"Expanded: {rel_input} -> {rel_output}")
            processed += 1
        else:
            skipped += 1

    summary = f"\n{processed} file(s) expanded, {skipped} skipped"
    if failed:
        summary += f", {failed} failed"
    click.echo(summary)

    if failed:
        raise SystemExit(1)


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option("-r", "--recursive", is_flag=True, help="Process directories recursively")
def check(paths, recursive):
    """Validate every quiz referenced by Markdown files.

    Loads and encodes each referenced definition without writing anything.

    Exit code 0 = all quizzes valid, 1 = at least one failure.

    \b
    Examples:
      quizembed check chapter.md
      quizembed check book/src -r
    """
    if not paths:
        raise click.UsageError("No files or directories specified")

    files = _collect_files(paths, recursive)

    ok = 0
    failed = 0

    for input_path in files:
        try:
            content = input_path.read_text(encoding="utf-8")
        except OSError as e:
            click.echo(f"Warning: Cannot read {input_path}: {e}", err=True)
            failed += 1
            continue
        except UnicodeDecodeError as e:
            click.echo(f"Warning: {input_path} is not UTF-8: {e}", err=True)
            failed += 1
            continue

        rel_input = _relative_path(input_path)
        for match in find_directives(content):
            try:
                definition = load_definition(input_path.parent, match.path)
                encode_metadata(definition.content)
            except QuizError as e:
                click.echo(f"FAIL {rel_input}: {match.path}: {e}", err=True)
                failed += 1
                continue
            click.echo(f"OK   {rel_input}: {match.path}")
            ok += 1

    click.echo(f"\n{ok} quiz(zes) valid, {failed} failed")

    if failed:
        raise SystemExit(1)


@main.command()
@click.argument("path", type=click.Path(exists=True))
def info(path):
    """List the quizzes in a file.

    For Markdown sources, lists the quiz directives. For expanded files,
    lists the embedded placeholders.

    \b
    Examples:
      quizembed info book/src/ch1.md
      quizembed info _expanded/ch1.md
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise click.ClickException(f"Not a file: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise click.ClickException(f"Cannot read {file_path}: {e}")
    except UnicodeDecodeError as e:
        raise click.ClickException(f"{file_path} is not UTF-8: {e}")

    directives = find_directives(content)
    placeholders = extract_placeholders(content) if has_placeholders(content) else []
    if not directives and not placeholders:
        raise click.ClickException("File has no quiz directives or placeholders")

    click.echo(f"File: {_relative_path(file_path)}")
    if directives:
        click.echo(f"Directives: {len(directives)}")
        for match in directives:
            resolved = file_path.parent / match.path
            status = "found" if resolved.is_file() else "missing"
            click.echo(f"  {match.path} ({status})")

    if placeholders:
        click.echo(f"Placeholders: {len(placeholders)}")
        for attrs in placeholders:
            click.echo(f"  {attrs.get('quiz-name', '?')}")
            try:
                questions = decode_metadata(attrs.get("quiz-questions", ""))
            except QuizError as e:
                click.echo(f"    questions: invalid ({e})")
            else:
                keys = ", ".join(questions) if isinstance(questions, dict) else "-"
                click.echo(f"    keys: {keys}")
            if "quiz-log-endpoint" in attrs:
                click.echo(f"    log endpoint: {attrs['quiz-log-endpoint']}")
            if "quiz-fullscreen" in attrs:
                click.echo("    fullscreen: yes")


@main.group()
def config():
    """Manage quizembed configuration."""
    pass


@config.command("init")
@click.option(
    "-d",
    "--directory",
    type=click.Path(),
    default=".",
    help="Directory to create config in",
)
def config_init(directory):
    """Create a new .quizembed.yaml configuration file."""
    try:
        config_path = create_default_config(Path(directory))
        click.echo(f"Created: {config_path}")
    except QuizError as e:
        raise click.ClickException(str(e))


@config.command("show")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True),
    help="Config file path",
)
def config_show(config_path):
    """Display current configuration.

    Shows merged configuration from file, environment, and defaults.
    """
    try:
        cfg = load_config(config_path=Path(config_path) if config_path else None)
        data = config_to_dict(cfg)
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))
    except QuizError as e:
        raise click.ClickException(str(e))


@config.command("where")
@click.option(
    "-d",
    "--directory",
    type=click.Path(exists=True),
    help="Directory to search from",
)
def config_where(directory):
    """Show which config file would be used.

    Searches up the directory tree for .quizembed.yaml.
    """
    start = Path(directory) if directory else Path.cwd()
    config_path = find_config_file(start)

    if config_path:
        click.echo(f"Config file: {config_path}")
    else:
        click.echo(f"No {CONFIG_FILENAME} found (searched from {start})")


def _count_directives(path: Path) -> int:
    try:
        return len(find_directives(path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError):
        return 0


def _collect_files(paths: tuple, recursive: bool) -> list[Path]:
    """Collect Markdown files from paths.

    Args:
        paths: Tuple of file/directory paths.
        recursive: Whether to search directories recursively.

    Returns:
        List of Markdown file paths.
    """
    files = []

    for path_str in paths:
        path = Path(path_str)

        if path.is_file():
            if path.suffix.lower() in MARKDOWN_EXTENSIONS:
                files.append(path)
        elif path.is_dir():
            for ext in MARKDOWN_EXTENSIONS:
                if recursive:
                    files.extend(path.rglob(f"*{ext}"))
                else:
                    files.extend(path.glob(f"*{ext}"))

    return sorted(set(files))


def _get_output_path(input_path: Path, source_paths: tuple, output_base: Path) -> Path:
    """Determine output path for a file.

    Args:
        input_path: Original file path.
        source_paths: Original source paths from command.
        output_base: Base output directory.

    Returns:
        Output file path.
    """
    input_resolved = input_path.resolve()

    for source in source_paths:
        source_path = Path(source).resolve()

        if source_path.is_file():
            if input_resolved == source_path:
                return output_base / input_path.name
        elif source_path.is_dir():
            try:
                rel = input_resolved.relative_to(source_path)
                return output_base / rel
            except ValueError:
                continue

    # Fallback: just use filename
    return output_base / input_path.name


def _relative_path(path: Path) -> str:
    """Get a relative path for display."""
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main()
