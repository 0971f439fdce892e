from __future__ import annotations

from typing import Any, Callable, Mapping, Optional, Protocol

from loguru import logger

from .asr import AsrClient
from .config import MeetAIConfig, load_config
from .rendering import RendererClient
from .tools import LLMCallable, MeetingTool, MeetingToolkit


class PluginApi(Protocol):
    """Subset of the host runtime API the plugin relies on."""

    def get_config(self) -> Mapping[str, Any] | None:
        ...

    def register_tool(self, factory: Callable[[], MeetingTool], *, optional: bool = False) -> None:
        ...


def _resolve_llm(api: PluginApi) -> Optional[LLMCallable]:
    call_llm = getattr(api, "call_llm", None)
    return call_llm if callable(call_llm) else None


def build_tools(config: MeetAIConfig, *, llm: Optional[LLMCallable] = None) -> list[MeetingTool]:
    renderer = RendererClient(config.renderer) if config.renderer is not None else None
    toolkit = MeetingToolkit(
        output_dir=config.output_dir,
        asr_client=AsrClient(config.asr),
        llm=llm,
        renderer=renderer,
    )
    return toolkit.tools()


class MeetAIPlugin:
    """Meeting audio processing for the host agent: transcripts, minutes, mind maps, diagrams."""

    id = "meetai"
    name = "MeetAI"
    description = "Meeting audio processing: transcription, minutes, mind maps and diagrams (Markdown output)"
    kind = "tool"

    def register(self, api: PluginApi) -> list[MeetingTool]:
        config = load_config(api.get_config() if hasattr(api, "get_config") else None)
        if not config.enabled:
            logger.info("MeetAI plugin is disabled")
            return []

        logger.info(
            "Registering MeetAI tools, ASR: {}, output dir: {}",
            config.asr.service_url,
            config.output_dir,
        )
        tools = build_tools(config, llm=_resolve_llm(api))
        for tool in tools:
            # Optional so that an unavailable backend never blocks the host.
            api.register_tool(lambda tool=tool: tool, optional=True)

        logger.info("Registered {} MeetAI tools", len(tools))
        return tools


plugin = MeetAIPlugin()
