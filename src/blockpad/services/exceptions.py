"""Custom exceptions for Blockpad services."""


class BlockpadError(Exception):
    """Base class for errors surfaced to the user."""


class PersistenceError(BlockpadError):
    """Raised when a note cannot be loaded from or written to storage.

    Attributes:
        note_id: Note the operation was for
        message: Human-readable error message
    """

    def __init__(self, note_id: str, message: str = "Storage operation failed"):
        """Initialize PersistenceError.

        Args:
            note_id: Note the operation was for
            message: Human-readable error message
        """
        self.note_id = note_id
        self.message = message
        super().__init__(f"{message}: {note_id}")


class NoteNotFoundError(PersistenceError):
    """Raised when the storage has no note with the requested id."""

    def __init__(self, note_id: str):
        super().__init__(note_id, "Note not found")
