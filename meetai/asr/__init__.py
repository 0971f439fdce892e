from .client import ALLOWED_EXTENSIONS, AsrClient, parse_transcript, validate_audio_path
from .models import (
    OrderStatus,
    ResultResponse,
    TranscriptionResult,
    TranscriptSegment,
    UploadResponse,
)
from .signing import canonical_query, encode_query, sign_params

__all__ = [
    "ALLOWED_EXTENSIONS",
    "AsrClient",
    "OrderStatus",
    "ResultResponse",
    "TranscriptionResult",
    "TranscriptSegment",
    "UploadResponse",
    "canonical_query",
    "encode_query",
    "parse_transcript",
    "sign_params",
    "validate_audio_path",
]
