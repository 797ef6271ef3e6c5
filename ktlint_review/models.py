"""Data models shared by the report, dispatch and publishing layers.

Contains:
    - Issue       one flattened ktlint finding
    - Violation   one entry recorded by the reporting sink
"""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Issue:
    """A single ktlint finding, flattened out of its file report."""

    file: str
    line: int
    column: int
    message: str
    rule: str

    @classmethod
    def from_raw(cls, file_report: dict[str, Any], error: dict[str, Any]) -> "Issue":
        """Project a ``{file, errors}`` record and one of its errors."""
        return cls(
            file=file_report["file"],
            line=error.get("line"),
            column=error.get("column"),
            message=error.get("message", ""),
            rule=error.get("rule", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Violation:
    """A message recorded for the review author.

    ``file`` and ``line`` are both ``None`` for general (summary) entries.
    """

    message: str
    file: str | None = None
    line: int | None = None

    @property
    def is_inline(self) -> bool:
        return self.file is not None and self.line is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
