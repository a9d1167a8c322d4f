"""Note storage collaborator.

The editor only needs two calls from storage: ``load`` and ``save``. Any
object with those coroutines can back an editing session; ``FileNoteStorage``
keeps one JSON file per note in a directory.
"""

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Optional, Protocol

import structlog
from pydantic import BaseModel, Field

from blockpad.services.exceptions import NoteNotFoundError, PersistenceError
from blockpad.services.file_operations import atomic_write

logger = structlog.get_logger()


NOTE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class NoteRecord(BaseModel):
    """A note as exchanged with storage."""

    title: str = Field(default="", description="Note title")
    text: str = Field(default="", description="Plain-text mirror of the content")
    blocks: Optional[list[dict[str, Any]]] = Field(
        default=None,
        description="Serialized blocks; absent for notes that only have text"
    )


class NoteStorage(Protocol):
    """Interface the editor consumes."""

    async def load(self, note_id: str) -> NoteRecord:
        ...

    async def save(self, note_id: str, record: NoteRecord) -> None:
        ...


class FileNoteStorage:
    """
    Store each note as ``<directory>/<note_id>.json``.

    Example:
        >>> storage = FileNoteStorage(Path("~/notes").expanduser())
        >>> record = await storage.load("meeting")
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory).expanduser()

    def path_for(self, note_id: str) -> Path:
        if not NOTE_ID_PATTERN.match(note_id):
            raise PersistenceError(note_id, "Invalid note id")
        return self.directory / f"{note_id}.json"

    def exists(self, note_id: str) -> bool:
        return self.path_for(note_id).exists()

    def list_notes(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json") if not p.name.startswith("."))

    async def load(self, note_id: str) -> NoteRecord:
        """
        Read a note.

        Raises:
            NoteNotFoundError: If no file exists for the note
            PersistenceError: If the file cannot be read or is not a note
        """
        path = self.path_for(note_id)
        return await asyncio.to_thread(self._read, note_id, path)

    async def save(self, note_id: str, record: NoteRecord) -> None:
        """
        Write a note atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        path = self.path_for(note_id)
        content = json.dumps(record.model_dump(), ensure_ascii=False, indent=2)
        await asyncio.to_thread(self._write, note_id, path, content)

    def _read(self, note_id: str, path: Path) -> NoteRecord:
        if not path.exists():
            raise NoteNotFoundError(note_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("note_read_failed", note_id=note_id, path=str(path), error=str(e))
            raise PersistenceError(note_id, f"Could not read note ({e})") from e

        if not isinstance(data, dict):
            raise PersistenceError(note_id, "Note file does not hold an object")

        title = data.get("title")
        text = data.get("text", data.get("content"))
        blocks = data.get("blocks")
        # Blocks are validated by the deserializer; keep whatever list is there
        return NoteRecord(
            title=title if isinstance(title, str) else "",
            text=text if isinstance(text, str) else "",
            blocks=blocks if isinstance(blocks, list) and all(isinstance(b, dict) for b in blocks) else None,
        )

    def _write(self, note_id: str, path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, content)
        except OSError as e:
            raise PersistenceError(note_id, f"Could not write note ({e})") from e
        logger.info("note_saved", note_id=note_id, path=str(path), size=len(content))
