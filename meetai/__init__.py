"""
MeetAI: meeting audio tools for a host agent runtime.

The plugin wires an external ASR service, the host's LLM and optional rendering
services into four tools that write Markdown artefacts.
"""

from .config import AsrConfig, MeetAIConfig, RendererConfig, load_config
from .plugin import MeetAIPlugin, PluginApi, build_tools, plugin

__all__ = [
    "AsrConfig",
    "MeetAIConfig",
    "MeetAIPlugin",
    "PluginApi",
    "RendererConfig",
    "build_tools",
    "load_config",
    "plugin",
]
