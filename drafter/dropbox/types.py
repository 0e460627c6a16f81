"""Types for the Dropbox layer."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EntryKind(str, Enum):
    FILE = "file"
    FOLDER = "folder"
    DELETED = "deleted"


@dataclass(frozen=True)
class Credential:
    """A bearer token for the Dropbox API.

    Replaced wholesale on refresh; never mutated in place.
    """

    access_token: str
    obtained_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"Credential(obtained_at={self.obtained_at.isoformat()!r})"


@dataclass(frozen=True)
class RemoteFile:
    """One entry from a folder listing.

    remote_path is None when the listing returned no retrievable path;
    such entries are never downloaded.
    """

    name: str
    remote_path: Optional[str]
    kind: EntryKind = EntryKind.FILE
    size: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @classmethod
    def from_entry(cls, entry: dict) -> "RemoteFile":
        """Build from a raw `list_folder` entry dict."""
        tag = entry.get(".tag", "")
        try:
            kind = EntryKind(tag)
        except ValueError:
            kind = EntryKind.DELETED
        return cls(
            name=entry.get("name", ""),
            remote_path=entry.get("path_lower") or entry.get("path_display"),
            kind=kind,
            size=entry.get("size"),
        )
