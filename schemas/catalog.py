"""
Recipe catalog schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional


class SchemaDefinition(BaseModel):
    """One configured command shape and the recipe that tabulates it."""

    pattern: str = Field(min_length=1)
    recipe: str = Field(min_length=1)
    name: Optional[str] = None

    def display_name(self) -> str:
        return self.name or self.pattern
