from __future__ import annotations

import base64
import binascii
from dataclasses import asdict, dataclass
from typing import Any, Literal, Optional

import requests
from loguru import logger

from meetai.config import RendererConfig
from meetai.errors import RendererError

RendererService = Literal["markmap", "mermaid"]


@dataclass(frozen=True)
class RenderOptions:
    width: int = 1920
    height: int = 1080
    format: str = "png"
    theme: str = "default"


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a render call; failures are reported, never raised."""

    success: bool
    image_data: Optional[bytes] = None
    error: Optional[str] = None


class RendererClient:
    """
    Client for the optional Markmap and Mermaid rendering services.

    The services are best effort: when they are missing the tools fall back to
    Markdown-only output, so this client reports problems through ``RenderResult``
    instead of raising.
    """

    def __init__(
        self,
        config: RendererConfig | None = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config or RendererConfig()
        self._session = session or requests.Session()

    def base_url(self, service: RendererService) -> str:
        url = self._config.markmap_url if service == "markmap" else self._config.mermaid_url
        return url.rstrip("/")

    def check_health(self, service: RendererService) -> bool:
        try:
            response = self._session.get(
                f"{self.base_url(service)}/health",
                timeout=self._config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.debug("{} renderer health check failed: {}", service, exc)
            return False
        return bool(response.ok)

    def render_markmap(self, markdown: str, options: RenderOptions | None = None) -> RenderResult:
        options = options or RenderOptions()
        body = {
            "markdown": markdown,
            "width": options.width,
            "height": options.height,
            "format": options.format,
        }
        return self._render("markmap", body)

    def render_mermaid(self, code: str, options: RenderOptions | None = None) -> RenderResult:
        options = options or RenderOptions()
        body: dict[str, Any] = {"code": code, **asdict(options)}
        return self._render("mermaid", body)

    def _render(self, service: RendererService, body: dict[str, Any]) -> RenderResult:
        try:
            response = self._session.post(
                f"{self.base_url(service)}/render",
                json=body,
                timeout=self._config.request_timeout,
            )
        except requests.RequestException as exc:
            return RenderResult(success=False, error=f"{service} renderer unavailable: {exc}")

        if not response.ok:
            return RenderResult(
                success=False,
                error=f"render failed: HTTP {response.status_code} {response.text}",
            )

        try:
            image = _decode_image(response.json())
        except (ValueError, RendererError) as exc:
            return RenderResult(success=False, error=str(exc))

        if not image:
            return RenderResult(success=False, error="render result is empty")
        return RenderResult(success=True, image_data=image)


def _decode_image(payload: Any) -> Optional[bytes]:
    if not isinstance(payload, dict):
        raise RendererError("render response is not a JSON object")
    encoded = payload.get("image")
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, TypeError) as exc:
        raise RendererError("render response image is not valid base64") from exc
