from __future__ import annotations

import datetime as _dt
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Type

import requests
from loguru import logger
from pydantic import BaseModel, ValidationError

from meetai.asr import AsrClient
from meetai.errors import LLMUnavailableError, TranscriptionCancelledError
from meetai.rendering import RendererClient, RenderResult
from meetai.rendering.client import RendererService

from . import prompts
from .models import DiagramParams, MindmapParams, SummarizeParams, ToolResult, TranscribeParams
from .output import generate_output_name, load_source_text, save_image, save_markdown

LLMCallable = Callable[[list[dict[str, str]]], str]
ToolHandler = Callable[[Any, Optional[threading.Event]], ToolResult]

_IMAGE_TIP = "Saved Markdown and a PNG image"
_NO_IMAGE_TIP = "Saved Markdown only (renderer unavailable, no image generated)"
_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


@dataclass(frozen=True)
class MeetingTool:
    """A tool as exposed to the host: name, description, parameter schema and handler."""

    name: str
    description: str
    parameters: Type[BaseModel]
    handler: ToolHandler
    failure_message: str

    def schema(self) -> dict[str, Any]:
        return self.parameters.model_json_schema()

    def execute(
        self,
        tool_call_id: str,
        params: Mapping[str, Any] | BaseModel,
        cancel_event: Optional[threading.Event] = None,
    ) -> ToolResult:
        """Run the tool; every failure is returned as an error result."""
        if not isinstance(params, (Mapping, self.parameters)):
            return ToolResult.error(
                f"invalid parameters for {self.name}: expected an object, got {type(params).__name__}"
            )
        try:
            parsed = (
                params
                if isinstance(params, self.parameters)
                else self.parameters.model_validate(dict(params))
            )
        except ValidationError as exc:
            return ToolResult.error(f"invalid parameters for {self.name}: {exc.error_count()} error(s)")

        try:
            result = self.handler(parsed, cancel_event)
        except Exception as exc:  # noqa: BLE001 - the host must always get a result
            logger.exception("Tool {} failed (call {})", self.name, tool_call_id)
            return ToolResult.error(str(exc) or self.failure_message)

        logger.info("Tool {} finished with status={} (call {})", self.name, result.status, tool_call_id)
        return result


class MeetingToolkit:
    """Implements the four meeting tools on top of the ASR, LLM and renderer collaborators."""

    def __init__(
        self,
        *,
        output_dir: Path,
        asr_client: AsrClient,
        llm: Optional[LLMCallable] = None,
        renderer: Optional[RendererClient] = None,
    ) -> None:
        self._output_dir = Path(output_dir)
        self._asr = asr_client
        self._llm = llm
        self._renderer = renderer

    def tools(self) -> list[MeetingTool]:
        out = self._output_dir
        return [
            MeetingTool(
                name="meeting_transcribe",
                description=(
                    "Transcribe meeting audio to text with speaker separation. "
                    f"Writes a Markdown transcript to {out}/ that memory_search can index."
                ),
                parameters=TranscribeParams,
                handler=self.transcribe,
                failure_message="transcription failed",
            ),
            MeetingTool(
                name="meeting_summarize",
                description=(
                    "Generate structured meeting minutes from a transcript: overview, decisions, "
                    f"action items and participants. Writes Markdown to {out}/."
                ),
                parameters=SummarizeParams,
                handler=self.summarize,
                failure_message="summary generation failed",
            ),
            MeetingTool(
                name="meeting_mindmap",
                description=(
                    "Generate a mind map from meeting content as Markmap Markdown in "
                    f"{out}/, plus a PNG when the rendering service is available."
                ),
                parameters=MindmapParams,
                handler=self.mindmap,
                failure_message="mind map generation failed",
            ),
            MeetingTool(
                name="meeting_diagram",
                description=(
                    "Generate a flowchart or sequence diagram in Mermaid syntax from a description. "
                    f"Writes Markdown to {out}/, plus a PNG when the rendering service is available."
                ),
                parameters=DiagramParams,
                handler=self.diagram,
                failure_message="diagram generation failed",
            ),
        ]

    def transcribe(
        self, params: TranscribeParams, cancel_event: Optional[threading.Event] = None
    ) -> ToolResult:
        audio_path = Path(params.audio_path).expanduser()
        try:
            result = self._asr.transcribe(audio_path, cancel_event=cancel_event)
        except TranscriptionCancelledError as exc:
            logger.info("Transcription of {} cancelled", audio_path)
            return ToolResult.error(str(exc))
        except Exception as exc:  # noqa: BLE001 - reported to the host with a hint
            logger.warning("Transcription of {} failed: {}", audio_path, exc)
            return ToolResult.error(str(exc), tip="Make sure the ASR service is running")

        text = result.text
        if params.optimize and self._llm is not None:
            text = self._llm(prompts.user_message(prompts.OPTIMIZE_TRANSCRIPT.format(transcript=text)))

        output_name = params.output_name or generate_output_name(audio_path.stem, "_transcript.md")
        transcribed_at = _dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        content = (
            "# Meeting Transcript\n\n"
            f"**Audio file**: {audio_path.name}\n"
            f"**Transcribed at**: {transcribed_at}\n"
            f"**Order ID**: {result.order_id or 'N/A'}\n\n"
            "---\n\n"
            f"{text}\n"
        )
        path = save_markdown(self._output_dir, output_name, content)

        return ToolResult(
            status="success",
            message="transcription completed",
            output_file=str(path),
            order_id=result.order_id,
            tip="The transcript was saved as Markdown and can be searched with memory_search",
        )

    def summarize(self, params: SummarizeParams, cancel_event: Optional[threading.Event] = None) -> ToolResult:
        source = load_source_text(params.source)
        summary = self._complete(prompts.SUMMARY.format(source=source))

        output_name = params.output_name or generate_output_name("meeting", "_summary.md")
        path = save_markdown(self._output_dir, output_name, summary)
        return ToolResult(status="success", message="meeting minutes generated", output_file=str(path))

    def mindmap(self, params: MindmapParams, cancel_event: Optional[threading.Event] = None) -> ToolResult:
        source = load_source_text(params.source)
        markdown = self._complete(prompts.MINDMAP.format(source=source))

        output_name = params.output_name or generate_output_name("mindmap", ".md")
        markdown_path = save_markdown(self._output_dir, output_name, markdown)

        image_path = None
        if params.render_image:
            image_path = self._render(
                "markmap", markdown_path, lambda client: client.render_markmap(markdown)
            )

        return ToolResult(
            status="success",
            message="mind map generated",
            markdown_file=str(markdown_path),
            image_file=str(image_path) if image_path else None,
            tip=_IMAGE_TIP if image_path else _NO_IMAGE_TIP,
        )

    def diagram(self, params: DiagramParams, cancel_event: Optional[threading.Event] = None) -> ToolResult:
        diagram_type = params.diagram_type or "flowchart"
        code = strip_code_fence(
            self._complete(
                prompts.DIAGRAM.format(diagram_type=diagram_type, description=params.description)
            )
        )

        content = f"# {params.description}\n\n```mermaid\n{code}\n```\n"
        output_name = params.output_name or generate_output_name("diagram", ".md")
        markdown_path = save_markdown(self._output_dir, output_name, content)

        image_path = None
        if params.render_image:
            image_path = self._render("mermaid", markdown_path, lambda client: client.render_mermaid(code))

        return ToolResult(
            status="success",
            message="diagram generated",
            markdown_file=str(markdown_path),
            image_file=str(image_path) if image_path else None,
            tip=_IMAGE_TIP if image_path else _NO_IMAGE_TIP,
        )

    def _complete(self, prompt: str) -> str:
        if self._llm is None:
            raise LLMUnavailableError("LLM service is not available")
        return self._llm(prompts.user_message(prompt))

    def _render(
        self,
        service: RendererService,
        markdown_path: Path,
        render: Callable[[RendererClient], RenderResult],
    ) -> Optional[Path]:
        if self._renderer is None:
            return None
        try:
            if not self._renderer.check_health(service):
                logger.warning("{} renderer is not reachable, skipping image", service)
                return None
            result = render(self._renderer)
        except requests.RequestException as exc:
            logger.warning("{} renderer failed: {}", service, exc)
            return None

        if not result.success or not result.image_data:
            logger.warning("{} render produced no image: {}", service, result.error)
            return None
        return save_image(markdown_path, result.image_data)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence the LLM may add despite instructions."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group("body").strip()
    return stripped
