from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

_DEFAULT_OUTPUT_DIR = Path("~/.openclaw/workspace/meetings")

# Host configuration is written in camelCase; dataclass fields are snake_case.
_KEY_ALIASES = {
    "serviceUrl": "service_url",
    "appid": "app_id",
    "appId": "app_id",
    "accessKeyId": "access_key_id",
    "accessKeySecret": "access_key_secret",
    "pollInterval": "poll_interval",
    "maxRetries": "max_retries",
    "requestTimeout": "request_timeout",
    "markmapUrl": "markmap_url",
    "mermaidUrl": "mermaid_url",
    "outputDir": "output_dir",
}


def _normalise_keys(data: Mapping[str, Any] | None) -> dict[str, Any]:
    if not data:
        return {}
    return {_KEY_ALIASES.get(key, key): value for key, value in data.items()}


def _pick(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {item.name for item in fields(cls)}
    return {key: value for key, value in data.items() if key in allowed and value is not None}


@dataclass(frozen=True)
class AsrConfig:
    """Connection details for the external ASR service."""

    service_url: str = "http://127.0.0.1:18001"
    app_id: str = ""
    access_key_id: str = ""
    access_key_secret: str = ""
    language: str = "zh"
    poll_interval: float = 10.0
    max_retries: int = 100
    request_timeout: float = 120.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "AsrConfig":
        """Create an instance from a mapping loaded out of config."""
        return cls(**_pick(cls, _normalise_keys(data)))

    def build_url(self, path: str) -> str:
        return f"{self.service_url.rstrip('/')}{path}"


@dataclass(frozen=True)
class RendererConfig:
    """Base URLs of the optional Markmap and Mermaid rendering services."""

    markmap_url: str = "http://localhost:3000"
    mermaid_url: str = "http://localhost:3001"
    request_timeout: float = 60.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RendererConfig":
        return cls(**_pick(cls, _normalise_keys(data)))


@dataclass(frozen=True)
class MeetAIConfig:
    """Root plugin configuration."""

    enabled: bool = True
    output_dir: Path = field(default_factory=lambda: _DEFAULT_OUTPUT_DIR.expanduser())
    asr: AsrConfig = field(default_factory=AsrConfig)
    renderer: Optional[RendererConfig] = field(default_factory=RendererConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "MeetAIConfig":
        values = _normalise_keys(data)
        kwargs: dict[str, Any] = {}
        if values.get("enabled") is not None:
            kwargs["enabled"] = bool(values["enabled"])
        if values.get("output_dir"):
            kwargs["output_dir"] = Path(str(values["output_dir"])).expanduser()
        if "asr" in values:
            kwargs["asr"] = AsrConfig.from_dict(values["asr"])
        if "renderer" in values:
            renderer = values["renderer"]
            kwargs["renderer"] = None if renderer is False else RendererConfig.from_dict(renderer)
        return cls(**kwargs)


_ENV_KEYS = {
    "MEETAI_OUTPUT_DIR": ("output_dir",),
    "MEETAI_ASR_URL": ("asr", "service_url"),
    "MEETAI_ASR_APP_ID": ("asr", "app_id"),
    "MEETAI_ASR_ACCESS_KEY_ID": ("asr", "access_key_id"),
    "MEETAI_ASR_ACCESS_KEY_SECRET": ("asr", "access_key_secret"),
    "MEETAI_ASR_POLL_INTERVAL": ("asr", "poll_interval"),
    "MEETAI_ASR_MAX_RETRIES": ("asr", "max_retries"),
    "MEETAI_MARKMAP_URL": ("renderer", "markmap_url"),
    "MEETAI_MERMAID_URL": ("renderer", "mermaid_url"),
}

_NUMERIC_KEYS = {"poll_interval": float, "max_retries": int}


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for env_key, target in _ENV_KEYS.items():
        raw = environ.get(env_key)
        if not raw:
            continue
        value: Any = raw.strip()
        caster = _NUMERIC_KEYS.get(target[-1])
        if caster is not None:
            try:
                value = caster(value)
            except ValueError:
                continue
        if len(target) == 1:
            result[target[0]] = value
        else:
            result.setdefault(target[0], {})[target[1]] = value
    return result


def load_config(
    data: Mapping[str, Any] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> MeetAIConfig:
    """
    Resolve the plugin configuration.

    Values supplied by the host win over ``MEETAI_*`` environment variables, which
    in turn win over the built-in defaults.
    """
    merged = _env_overrides(os.environ if environ is None else environ)
    for key, value in _normalise_keys(data).items():
        if key in {"asr", "renderer"} and isinstance(value, Mapping):
            section = dict(merged.get(key) or {})
            section.update(_normalise_keys(value))
            merged[key] = section
        else:
            merged[key] = value
    return MeetAIConfig.from_dict(merged)
