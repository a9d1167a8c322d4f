"""CLI entry point for Blockpad."""

import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from blockpad import __version__
from blockpad.config import ConfigManager
from blockpad.editor.session import EditorSession
from blockpad.models.block_kind import BlockKind, FormatKind
from blockpad.models.cursor import CursorState
from blockpad.services.exceptions import BlockpadError, NoteNotFoundError
from blockpad.services.note_storage import FileNoteStorage
from blockpad.tui.console_renderer import render_document
from blockpad.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()

KIND_CHOICES = [kind.value for kind in BlockKind]
FORMAT_CHOICES = [kind.value for kind in FormatKind]


def load_config() -> ConfigManager:
    """
    Load configuration, falling back to defaults when no file exists.

    Raises:
        click.ClickException: If the config file is invalid
    """
    try:
        return ConfigManager.load_default()
    except (ValueError, PermissionError) as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def get_storage(ctx: click.Context) -> FileNoteStorage:
    notes_dir = ctx.obj.get("notes_dir") if ctx.obj else None
    if notes_dir is None:
        notes_dir = load_config().notes_path
    return FileNoteStorage(Path(notes_dir))


def open_session(ctx: click.Context, note_id: str, create: bool = False) -> EditorSession:
    """Open a note, turning storage errors into CLI errors."""
    storage = get_storage(ctx)
    config = load_config()
    try:
        return asyncio.run(EditorSession.open(storage, note_id, config=config.editor, create=create))
    except NoteNotFoundError:
        raise click.ClickException(f"Note not found: {note_id}")
    except BlockpadError as e:
        logger.error("note_open_failed", note_id=note_id, error=str(e))
        raise click.ClickException(str(e))


def save_session(session: EditorSession) -> bool:
    errors = []
    session.scheduler.on_error = errors.append
    saved = asyncio.run(session.flush())
    if errors:
        raise click.ClickException(f"Could not save note: {errors[0]}")
    return saved


def block_at(session: EditorSession, index: int):
    if not 0 <= index < len(session.document):
        raise click.ClickException(
            f"Block index {index} out of range (note has {len(session.document)} blocks)"
        )
    return session.document[index]


@click.group()
@click.version_option(version=__version__, prog_name="blockpad")
@click.option(
    "--notes-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding notes (overrides config)",
)
@click.pass_context
def cli(ctx: click.Context, notes_dir: Optional[Path]):
    """Blockpad: block-structured notes from the command line."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["notes_dir"] = notes_dir


@cli.command()
@click.argument("note_id")
@click.pass_context
def show(ctx: click.Context, note_id: str):
    """
    Render a note in the terminal.

    Example:
        blockpad show meeting
    """
    session = open_session(ctx, note_id)
    if session.title:
        console.print(session.title, style="bold reverse")
    console.print(render_document(session.document))


@cli.command()
@click.argument("note_id")
@click.pass_context
def blocks(ctx: click.Context, note_id: str):
    """List a note's blocks with their positions and kinds."""
    session = open_session(ctx, note_id)

    table = Table(show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Id", style="dim")
    table.add_column("Content")
    for index, block in enumerate(session.document):
        preview = block.text if block.kind.is_text_bearing else f"[{block.kind.value}]"
        if len(preview) > 60:
            preview = preview[:57] + "..."
        table.add_row(str(index), block.kind.value, block.id[:8], preview)
    console.print(table)


@cli.command()
@click.argument("note_id")
@click.option("--title", default="", help="Note title")
@click.option("--text", default="", help="Text of the first paragraph")
@click.pass_context
def new(ctx: click.Context, note_id: str, title: str, text: str):
    """
    Create a note.

    Example:
        blockpad new meeting --title "Weekly sync" --text "Agenda"
    """
    storage = get_storage(ctx)
    if storage.exists(note_id):
        raise click.ClickException(f"Note already exists: {note_id}")

    session = open_session(ctx, note_id, create=True)
    session.title = title
    if text:
        session.set_text(session.document[0].id, text)

    if not save_session(session):
        click.echo("Nothing to save: a new note needs a title or some text", err=True)
        raise click.Abort()
    logger.info("note_command_new", note_id=note_id)
    click.echo(f"Created note {note_id}")


@cli.command()
@click.argument("note_id")
@click.argument("text", required=False, default="")
@click.option("--kind", type=click.Choice(KIND_CHOICES), default=BlockKind.PARAGRAPH.value, help="Block kind")
@click.pass_context
def append(ctx: click.Context, note_id: str, text: str, kind: str):
    """
    Append a block to the end of a note.

    Examples:
        blockpad append meeting "Follow up with design"
        blockpad append meeting "Ship it" --kind bulleted_item
        blockpad append meeting --kind divider
    """
    block_kind = BlockKind(kind)
    session = open_session(ctx, note_id)
    last = session.document[-1]

    if len(session.document) == 1 and last.kind is BlockKind.PARAGRAPH and last.is_empty:
        # Fill the placeholder paragraph instead of appending after it
        session.retype(last.id, block_kind)
        target = session.document[-1]
    else:
        anchor = CursorState.caret(last.id, len(last.text))
        result = session.insert_block(block_kind, anchor)
        target = result.document.get(result.focus.block_id)

    if text and block_kind.is_text_bearing:
        session.set_text(target.id, text)

    save_session(session)
    click.echo(f"Appended {block_kind.value} block at position {session.document.index_of(target.id)}")


@cli.command(name="format")
@click.argument("note_id")
@click.argument("index", type=int)
@click.argument("start", type=int)
@click.argument("end", type=int)
@click.option("--kind", type=click.Choice(FORMAT_CHOICES), default=FormatKind.BOLD.value, help="Inline format")
@click.pass_context
def format_command(ctx: click.Context, note_id: str, index: int, start: int, end: int, kind: str):
    """
    Toggle an inline format over [START, END) of block INDEX.

    Example:
        blockpad format meeting 0 0 5 --kind bold
    """
    session = open_session(ctx, note_id)
    block = block_at(session, index)
    if not block.kind.is_text_bearing:
        raise click.ClickException(f"Block {index} is a {block.kind.value} block and has no text")
    if not 0 <= min(start, end) or max(start, end) > len(block.text) or start == end:
        raise click.ClickException(f"Range [{start}, {end}) is not inside the block's text")

    result = session.apply_format(FormatKind(kind), CursorState.selection(block.id, start, end))
    save_session(session)
    active = kind in {k.value for k in session.active_formats(CursorState.selection(block.id, start, end))}
    click.echo(f"{kind} {'applied to' if active else 'removed from'} block {index}")
    logger.info("note_command_format", note_id=note_id, changed=result.changed)


@cli.command()
@click.argument("note_id")
@click.argument("source", type=int)
@click.argument("destination", type=int)
@click.pass_context
def move(ctx: click.Context, note_id: str, source: int, destination: int):
    """
    Move block SOURCE to position DESTINATION.

    Example:
        blockpad move meeting 3 0
    """
    session = open_session(ctx, note_id)
    block_at(session, source)
    block_at(session, destination)

    session.drag_reorder(source, destination)
    save_session(session)
    click.echo(f"Moved block {source} to {destination}")


@cli.command()
@click.argument("note_id")
@click.argument("index", type=int)
@click.argument("kind", type=click.Choice(KIND_CHOICES))
@click.pass_context
def retype(ctx: click.Context, note_id: str, index: int, kind: str):
    """
    Change the kind of block INDEX.

    Text survives between text kinds; switching to or from a table, image,
    calendar or checklist starts the block over with default content.
    """
    session = open_session(ctx, note_id)
    block = block_at(session, index)

    session.retype(block.id, BlockKind(kind))
    save_session(session)
    click.echo(f"Block {index} is now {kind}")


if __name__ == "__main__":
    cli()
