"""Binary and multipart body containers.

:class:`Blob` is the byte-blob handle produced when a binary response is
decoded, and the binary-object payload accepted as a request body.
:class:`FormData` is the multipart container used in both directions.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import IO, Any, Iterator, Optional, Union


@dataclass(frozen=True)
class Blob:
    """Immutable chunk of bytes with an optional media type and file name."""

    content: bytes
    content_type: str = "application/octet-stream"
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding)

    @classmethod
    def from_file(cls, file: IO[Any], content_type: str = "application/octet-stream") -> Blob:
        """Read an open file object into a blob named after the file."""
        data = file.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        name = getattr(file, "name", None)
        filename = os.path.basename(name) if isinstance(name, str) else None
        return cls(content=data, content_type=content_type, filename=filename)


FormValue = Union[str, Blob]


class FormData:
    """Ordered multi-valued mapping of form field names to text or blobs.

    Example::

        form = FormData()
        form.append("title", "report")
        form.append("file", Blob(b"%PDF-1.7", "application/pdf", "report.pdf"))
    """

    def __init__(self, fields: Optional[list[tuple[str, FormValue]]] = None) -> None:
        self._fields: list[tuple[str, FormValue]] = list(fields or [])

    def append(self, name: str, value: FormValue) -> None:
        self._fields.append((name, value))

    def get(self, name: str, default: Optional[FormValue] = None) -> Optional[FormValue]:
        """Return the first value stored under *name*."""
        for key, value in self._fields:
            if key == name:
                return value
        return default

    def getall(self, name: str) -> list[FormValue]:
        return [value for key, value in self._fields if key == name]

    def items(self) -> list[tuple[str, FormValue]]:
        return list(self._fields)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._fields)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormData):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"FormData({self._fields!r})"
