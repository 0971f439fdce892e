from .meeting import LLMCallable, MeetingTool, MeetingToolkit, strip_code_fence
from .models import DiagramParams, MindmapParams, SummarizeParams, ToolResult, TranscribeParams
from .output import generate_output_name, load_source_text, save_image, save_markdown

__all__ = [
    "DiagramParams",
    "LLMCallable",
    "MeetingTool",
    "MeetingToolkit",
    "MindmapParams",
    "SummarizeParams",
    "ToolResult",
    "TranscribeParams",
    "generate_output_name",
    "load_source_text",
    "save_image",
    "save_markdown",
    "strip_code_fence",
]
