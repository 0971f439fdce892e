from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Optional

import requests
from loguru import logger
from pydantic import ValidationError

from meetai.config import AsrConfig
from meetai.errors import (
    AsrPollError,
    AsrTimeoutError,
    AsrUploadError,
    AudioValidationError,
    TranscriptionCancelledError,
    UnexpectedResponseError,
)

from .models import (
    DEFAULT_SPEAKER,
    SUCCESS_CODE,
    OrderStatus,
    ResultEnvelope,
    ResultResponse,
    TranscriptionResult,
    TranscriptSegment,
    UploadResponse,
)
from .signing import encode_query, new_nonce, sign_params, unix_timestamp

ALLOWED_EXTENSIONS = (".wav", ".mp3", ".m4a")

UPLOAD_PATH = "/v1/upload"
RESULT_PATH = "/v1/getResult"


def validate_audio_path(audio_path: Path) -> Path:
    """Check that ``audio_path`` is an existing file in a supported format."""
    if not audio_path.exists():
        raise AudioValidationError(f"audio file not found: {audio_path}")
    if not audio_path.is_file():
        raise AudioValidationError(f"not a regular file: {audio_path}")

    extension = audio_path.suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise AudioValidationError(
            f"unsupported audio format: {extension or '<none>'}, expected one of wav/mp3/m4a"
        )
    return audio_path


def parse_transcript(response: ResultResponse, *, order_id: str) -> TranscriptionResult:
    """Turn the vendor sentence list into speaker-tagged segments, keeping vendor order."""
    order_result = response.content.order_result if response.content else None
    sentences = order_result.sentences if order_result else []

    segments: list[TranscriptSegment] = []
    for sentence in sentences:
        text = (sentence.text or "").strip()
        if not text:
            continue
        speaker = str(sentence.speaker_id) if sentence.speaker_id else DEFAULT_SPEAKER
        segments.append(
            TranscriptSegment(
                speaker=speaker,
                text=text,
                start_time=sentence.begin_time,
                end_time=sentence.end_time,
            )
        )

    text = "\n".join(f"{segment.speaker}: {segment.text}" for segment in segments)
    return TranscriptionResult(text=text, segments=segments, order_id=order_id)


class AsrClient:
    """
    Client for the upload/poll ASR service.

    The client holds only immutable configuration and a ``requests`` session, so a
    single instance can serve concurrent tool invocations.
    """

    def __init__(
        self,
        config: AsrConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> AsrConfig:
        return self._config

    def transcribe(
        self,
        audio_path: Path,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> TranscriptionResult:
        audio_path = validate_audio_path(Path(audio_path))
        order_id = self.upload(audio_path)
        logger.info("Uploaded {} to ASR service, order {}", audio_path.name, order_id)

        response = self.poll_result(order_id, cancel_event=cancel_event)
        result = parse_transcript(response, order_id=order_id)
        logger.info(
            "Transcription of order {} completed with {} segments", order_id, len(result.segments)
        )
        return result

    def upload(self, audio_path: Path) -> str:
        """Upload the audio file and return the order id issued by the service."""
        params = self._base_params()
        params.update(
            {
                "fileSize": str(audio_path.stat().st_size),
                "fileName": audio_path.name,
                "language": self._config.language,
                "duration": "0",
            }
        )
        signature = sign_params(params, self._config.access_key_secret)
        url = f"{self._config.build_url(UPLOAD_PATH)}?{encode_query(params)}"

        try:
            with audio_path.open("rb") as handle:
                response = self._session.post(
                    url,
                    headers={"signature": signature},
                    files={"file": (audio_path.name, handle)},
                    timeout=self._config.request_timeout,
                )
        except requests.RequestException as exc:
            logger.error("ASR upload request failed for {}: {}", audio_path, exc)
            raise AsrUploadError(f"upload request failed: {exc}") from exc

        if not response.ok:
            raise AsrUploadError(
                f"upload failed: HTTP {response.status_code} {response.text}",
                http_status=response.status_code,
                body=response.text,
            )

        payload = self._validate(UploadResponse, _json_body(response))
        if payload.code != SUCCESS_CODE:
            raise AsrUploadError(
                f"upload failed: {payload.code} - {payload.desc_info or 'unknown error'}",
                http_status=response.status_code,
                code=payload.code,
            )

        order_id = payload.content.order_id if payload.content else None
        if not order_id:
            raise AsrUploadError(
                "upload succeeded but no order id returned",
                http_status=response.status_code,
                code=payload.code,
            )
        return order_id

    def poll_result(
        self,
        order_id: str,
        *,
        max_retries: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ResultResponse:
        """
        Query the order until it completes.

        Only the processing status is retried, after ``poll_interval`` seconds; any
        other status is terminal. Setting ``cancel_event`` stops polling with a
        ``TranscriptionCancelledError``.
        """
        retries = self._config.max_retries if max_retries is None else max_retries
        cancel_event = cancel_event or threading.Event()

        for attempt in range(1, retries + 1):
            if cancel_event.is_set():
                raise TranscriptionCancelledError(order_id)

            response = self._query(order_id)
            status = response.content.order_info.status  # type: ignore[union-attr]
            logger.debug("Order {} status={} (attempt {}/{})", order_id, status, attempt, retries)

            if status == OrderStatus.COMPLETE:
                return response
            if status != OrderStatus.PROCESSING:
                raise AsrPollError(
                    f"unexpected transcription status: {status}",
                    code=response.code,
                    status=status,
                )

            if attempt < retries and cancel_event.wait(self._config.poll_interval):
                raise TranscriptionCancelledError(order_id)

        raise AsrTimeoutError(retries)

    def _query(self, order_id: str) -> ResultResponse:
        # A fresh timestamp and nonce on every attempt; signatures are never reused.
        params = self._base_params()
        params["orderId"] = order_id
        signature = sign_params(params, self._config.access_key_secret)
        url = f"{self._config.build_url(RESULT_PATH)}?{encode_query(params)}"

        try:
            response = self._session.post(
                url,
                headers={"Content-Type": "application/json", "signature": signature},
                json={},
                timeout=self._config.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("ASR result query failed for order {}: {}", order_id, exc)
            raise AsrPollError(f"result query failed: {exc}") from exc

        if not response.ok:
            raise AsrPollError(
                f"result query failed: HTTP {response.status_code}",
                http_status=response.status_code,
            )

        body = _json_body(response)
        envelope = self._validate(ResultEnvelope, body)
        if envelope.code != SUCCESS_CODE:
            raise AsrPollError(
                f"result query failed: {envelope.code} - {envelope.desc_info or 'unknown error'}",
                code=envelope.code,
            )

        payload = self._validate(ResultResponse, body)
        if payload.content is None:
            raise UnexpectedResponseError("result response is missing content.orderInfo")
        return payload

    def _base_params(self) -> dict[str, str]:
        return {
            "appId": self._config.app_id,
            "accessKeyId": self._config.access_key_id,
            "timestamp": unix_timestamp(),
            "nonce": new_nonce(),
        }

    @staticmethod
    def _validate(model: Any, body: Any) -> Any:
        try:
            return model.model_validate(body)
        except ValidationError as exc:
            raise UnexpectedResponseError(
                f"unexpected {model.__name__} shape: {exc.error_count()} validation error(s)"
            ) from exc


def _json_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise UnexpectedResponseError(
            f"ASR service returned a non-JSON body (HTTP {response.status_code})"
        ) from exc
