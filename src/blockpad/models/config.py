"""Configuration models for Blockpad."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from blockpad.models.payloads import DEFAULT_CHECKLIST_TITLE


class EditorConfig(BaseModel):
    """Editing and autosave behavior."""

    save_debounce_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Quiet period after the last edit before the note is saved"
    )

    large_selection_ratio: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Share of a block's text a selection must cover for Backspace/Delete to act on the whole block"
    )

    min_new_note_chars: int = Field(
        default=3,
        ge=0,
        description="A new untitled note is saved only once its text is longer than this"
    )

    checklist_title: str = Field(
        default=DEFAULT_CHECKLIST_TITLE,
        description="Title given to newly inserted checklists"
    )

    model_config = {"frozen": True}


class StorageConfig(BaseModel):
    """Where notes are kept."""

    notes_path: str = Field(
        default="~/.local/share/blockpad/notes",
        description="Directory holding one JSON file per note"
    )

    @field_validator('notes_path')
    @classmethod
    def validate_notes_path(cls, v: str) -> str:
        """Expand ``~`` and reject paths that exist but are not directories."""
        path = Path(v).expanduser()
        if path.exists() and not path.is_dir():
            raise ValueError(
                f"Notes path is not a directory: {path}\n"
                f"Please provide a valid directory path"
            )
        return str(path)

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for Blockpad."""

    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editor settings")
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Note storage settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Example:\n\n"
                f"editor:\n"
                f"  save_debounce_seconds: 5\n"
                f"  large_selection_ratio: 0.5\n\n"
                f"storage:\n"
                f"  notes_path: ~/.local/share/blockpad/notes\n"
            )

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")

        return cls(**data)

    model_config = {"frozen": True}
