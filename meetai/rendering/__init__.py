from .client import RendererClient, RenderOptions, RenderResult

__all__ = ["RendererClient", "RenderOptions", "RenderResult"]
