"""
Response schemas for tabfy output.
"""
from pydantic import BaseModel
from typing import Optional

class TableValue(BaseModel):
    """Materialized table: ordered rows of text columns."""
    rows: list[dict[str, str]] = []
    warnings: list[str] = []

    class Config:
        frozen = True  # Immutable

    def columns(self) -> list[str]:
        """Union of row keys in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)

    def __len__(self) -> int:
        return len(self.rows)

class FailureReport(BaseModel):
    """Serializable form of a labeled failure."""
    kind: str
    message: str
    label: str
    span: Optional[tuple[int, int]] = None
