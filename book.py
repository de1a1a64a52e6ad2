from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Book:
    """A single record in the catalog."""

    id: int
    title: str | None = None
    author: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "author": self.author}
