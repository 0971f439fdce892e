from __future__ import annotations

from typing import Optional


class MeetAIError(RuntimeError):
    """Base class for every error raised by the MeetAI plugin."""


class AudioValidationError(MeetAIError, ValueError):
    """Raised when an audio source is missing or has an unsupported format."""


class AsrError(MeetAIError):
    """Raised when the ASR service cannot produce a transcript."""


class AsrUploadError(AsrError):
    """Raised when the audio upload is rejected or returns no order id."""

    def __init__(
        self,
        message: str,
        *,
        http_status: Optional[int] = None,
        code: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.code = code
        self.body = body


class AsrPollError(AsrError):
    """Raised when a result query fails or reports an unexpected status."""

    def __init__(
        self,
        message: str,
        *,
        http_status: Optional[int] = None,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.code = code
        self.status = status


class AsrTimeoutError(AsrError):
    """Raised when the order is still processing after the retry budget."""

    def __init__(self, retries: int) -> None:
        super().__init__(f"transcription timed out after {retries} retries")
        self.retries = retries


class TranscriptionCancelledError(AsrError):
    """Raised when the caller aborts polling."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"transcription of order {order_id} was cancelled")
        self.order_id = order_id


class UnexpectedResponseError(AsrError):
    """Raised when the ASR service answers with a payload we cannot interpret."""


class LLMUnavailableError(MeetAIError):
    """Raised when a tool needs the host LLM but none was provided."""


class RendererError(MeetAIError):
    """Raised when a render response cannot be decoded."""
