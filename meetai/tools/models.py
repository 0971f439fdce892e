from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolResult(BaseModel):
    """Structured payload handed back to the host for every tool call."""

    status: Literal["success", "error"]
    message: str
    output_file: Optional[str] = None
    markdown_file: Optional[str] = None
    image_file: Optional[str] = None
    order_id: Optional[str] = None
    tip: Optional[str] = None

    @classmethod
    def error(cls, message: str, *, tip: Optional[str] = None) -> "ToolResult":
        return cls(status="error", message=message, tip=tip)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class _ToolParams(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TranscribeParams(_ToolParams):
    audio_path: str = Field(..., description="Path to the audio file (wav/mp3/m4a).")
    optimize: bool = Field(True, description="Clean up the transcript with the LLM.")
    output_name: Optional[str] = Field(
        None, description="Output file name without extension; defaults to one derived from the audio file."
    )


class SummarizeParams(_ToolParams):
    source: str = Field(..., description="Path to a transcript (.md) or the transcript text itself.")
    output_name: Optional[str] = Field(None, description="Output file name without extension.")


class MindmapParams(_ToolParams):
    source: str = Field(..., description="Path to a transcript or minutes (.md), or inline text.")
    output_name: Optional[str] = Field(None, description="Output file name without extension.")
    render_image: bool = Field(True, description="Render a PNG through the Markmap service.")


class DiagramParams(_ToolParams):
    description: str = Field(
        ..., description="Natural-language description, e.g. 'user login flow'."
    )
    diagram_type: str = Field(
        "flowchart", description="flowchart (default), sequence or class."
    )
    output_name: Optional[str] = Field(None, description="Output file name without extension.")
    render_image: bool = Field(True, description="Render a PNG through the Mermaid service.")
