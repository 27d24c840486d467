"""Enumerations shared by the ORM models and API schemas."""

from enum import StrEnum
from pathlib import PurePosixPath


class FileType(StrEnum):
    """Kind of a project file, derived from its extension."""

    HTML = "HTML"
    CSS = "CSS"
    JS = "JS"
    JSON = "JSON"
    TS = "TS"
    TSX = "TSX"
    JSX = "JSX"


class ChangeType(StrEnum):
    """Kind of mutation recorded in the change log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


_EXTENSION_TYPES = {
    ".css": FileType.CSS,
    ".js": FileType.JS,
    ".ts": FileType.TS,
    ".tsx": FileType.TSX,
    ".jsx": FileType.JSX,
    ".json": FileType.JSON,
}


def infer_file_type(filename: str) -> FileType:
    """Map a filename's extension to a FileType; anything unknown is HTML."""
    return _EXTENSION_TYPES.get(PurePosixPath(filename).suffix.lower(), FileType.HTML)
