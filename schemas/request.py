"""
Request schemas for tabfy pipeline input.
"""
from pydantic import BaseModel, Field
from typing import Optional, Union

class PipelineRequest(BaseModel):
    """Host view of the pipeline source text around the tabfy call."""
    source: Union[str, bytes]
    input_start: int = Field(default=0, ge=0)
    head: Optional[int] = Field(default=None, ge=0)

    def head_offset(self) -> int:
        """Offset of the call head; the end of the source when unknown."""
        return len(self.source) if self.head is None else self.head

    def span_contents(self) -> Union[str, bytes]:
        """Raw text spanning from the input start up to the call head."""
        return self.source[self.input_start:self.head_offset()]

    def head_span(self) -> tuple[int, int]:
        offset = self.head_offset()
        return (offset, offset)
