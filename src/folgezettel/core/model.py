from __future__ import annotations
from dataclasses import dataclass
from pathlib import PurePosixPath


@dataclass(frozen=True)
class Note:
    path: str  # POSIX path relative to the vault root, e.g. "zk/1.2a Topic.md"
    basename: str  # filename without extension; carries the address
    extension: str  # "md" for markdown notes

    @classmethod
    def from_path(cls, path: str) -> "Note":
        p = PurePosixPath(path)
        return cls(path=str(p), basename=p.stem, extension=p.suffix.lstrip("."))

    @property
    def folder(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent
