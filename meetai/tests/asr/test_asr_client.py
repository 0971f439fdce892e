from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any
from unittest import mock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from meetai.asr import AsrClient
from meetai.config import AsrConfig
from meetai.errors import (
    AsrPollError,
    AsrTimeoutError,
    AsrUploadError,
    AudioValidationError,
    TranscriptionCancelledError,
    UnexpectedResponseError,
)


def _response(payload: Any, status: int = 200) -> mock.Mock:
    response = mock.Mock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.json.return_value = payload
    response.text = json.dumps(payload)
    return response


def _status(status: int, sentences: list[dict[str, Any]] | None = None) -> mock.Mock:
    content: dict[str, Any] = {"orderInfo": {"status": status}}
    if sentences is not None:
        content["orderResult"] = {"sentences": sentences}
    return _response({"code": "000000", "content": content})


def _client(session: mock.Mock, **overrides: Any) -> AsrClient:
    config = AsrConfig(
        service_url="http://asr.test",
        app_id="app",
        access_key_id="key-id",
        access_key_secret="secret",
        poll_interval=0,
        **overrides,
    )
    return AsrClient(config, session=session)


def _query(call: Any) -> dict[str, list[str]]:
    return parse_qs(urlsplit(call.args[0]).query, keep_blank_values=True)


@pytest.fixture()
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "meeting.wav"
    path.write_bytes(b"RIFF" + b"\x00" * 64)
    return path


def test_transcribe_end_to_end(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.side_effect = [
        _response({"code": "000000", "content": {"orderId": "abc123"}}),
        _status(3),
        _status(4, [{"speakerId": "S0", "text": "hello"}, {"speakerId": "S1", "text": "world"}]),
    ]

    result = _client(session).transcribe(audio_file)

    assert result.text == "S0: hello\nS1: world"
    assert result.order_id == "abc123"
    assert [segment.speaker for segment in result.segments] == ["S0", "S1"]
    assert session.post.call_count == 3


def test_upload_request_is_signed_multipart(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "000000", "content": {"orderId": "o-1"}})

    order_id = _client(session).upload(audio_file)

    assert order_id == "o-1"
    call = session.post.call_args
    assert call.args[0].startswith("http://asr.test/v1/upload?")
    query = _query(call)
    assert query["fileName"] == ["meeting.wav"]
    assert query["fileSize"] == [str(audio_file.stat().st_size)]
    assert query["language"] == ["zh"]
    assert query["duration"] == ["0"]
    assert len(query["nonce"][0]) == 16
    assert call.kwargs["headers"]["signature"]
    assert call.kwargs["files"]["file"][0] == "meeting.wav"


def test_upload_without_secret_sends_empty_signature(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "000000", "content": {"orderId": "o-1"}})
    client = AsrClient(AsrConfig(service_url="http://asr.test"), session=session)

    client.upload(audio_file)

    assert session.post.call_args.kwargs["headers"]["signature"] == ""


def test_upload_http_error_carries_status_and_body(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"detail": "boom"}, status=500)

    with pytest.raises(AsrUploadError) as excinfo:
        _client(session).upload(audio_file)

    assert excinfo.value.http_status == 500
    assert "boom" in (excinfo.value.body or "")


def test_upload_vendor_error_code(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "100020", "descInfo": "bad signature"})

    with pytest.raises(AsrUploadError, match="bad signature") as excinfo:
        _client(session).upload(audio_file)

    assert excinfo.value.code == "100020"


def test_upload_without_order_id_fails(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "000000", "content": {}})

    with pytest.raises(AsrUploadError, match="no order id"):
        _client(session).upload(audio_file)


def test_upload_transport_error_is_wrapped(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.side_effect = requests.ConnectionError("refused")

    with pytest.raises(AsrUploadError):
        _client(session).upload(audio_file)


def test_rejects_unsupported_extension_before_network(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("not audio", encoding="utf-8")
    session = mock.Mock()

    with pytest.raises(AudioValidationError, match="unsupported audio format"):
        _client(session).transcribe(path)

    session.post.assert_not_called()


def test_rejects_missing_file_and_directories(tmp_path: Path) -> None:
    session = mock.Mock()

    with pytest.raises(AudioValidationError, match="not found"):
        _client(session).transcribe(tmp_path / "missing.mp3")

    folder = tmp_path / "folder.wav"
    folder.mkdir()
    with pytest.raises(AudioValidationError, match="not a regular file"):
        _client(session).transcribe(folder)

    session.post.assert_not_called()


def test_accepts_uppercase_extension(tmp_path: Path) -> None:
    path = tmp_path / "MEETING.M4A"
    path.write_bytes(b"\x00")
    session = mock.Mock()
    session.post.side_effect = [
        _response({"code": "000000", "content": {"orderId": "o-2"}}),
        _status(4, []),
    ]

    result = _client(session).transcribe(path)

    assert result.text == ""
    assert result.segments == []


@pytest.mark.parametrize("processing_calls", [0, 1, 4])
def test_poll_returns_completing_payload(processing_calls: int) -> None:
    session = mock.Mock()
    final = _status(4, [{"speakerId": "S3", "text": "done"}])
    session.post.side_effect = [_status(3)] * processing_calls + [final]

    response = _client(session).poll_result("order-1")

    assert response.model_dump(by_alias=True)["content"]["orderResult"]["sentences"][0]["text"] == "done"
    assert session.post.call_count == processing_calls + 1


def test_poll_uses_fresh_nonce_per_attempt() -> None:
    session = mock.Mock()
    session.post.side_effect = [_status(3), _status(3), _status(4, [])]

    _client(session).poll_result("order-1")

    calls = session.post.call_args_list
    nonces = {_query(call)["nonce"][0] for call in calls}
    assert len(nonces) == 3
    for call in calls:
        assert call.args[0].startswith("http://asr.test/v1/getResult?")
        assert _query(call)["orderId"] == ["order-1"]
        assert call.kwargs["json"] == {}


def test_poll_times_out_after_max_retries() -> None:
    session = mock.Mock()
    session.post.side_effect = lambda *args, **kwargs: _status(3)

    with pytest.raises(AsrTimeoutError, match="5 retries") as excinfo:
        _client(session).poll_result("order-1", max_retries=5)

    assert excinfo.value.retries == 5
    assert session.post.call_count == 5


def test_poll_uses_configured_retry_budget() -> None:
    session = mock.Mock()
    session.post.side_effect = lambda *args, **kwargs: _status(3)

    with pytest.raises(AsrTimeoutError):
        _client(session, max_retries=2).poll_result("order-1")

    assert session.post.call_count == 2


def test_poll_unexpected_status_is_terminal() -> None:
    session = mock.Mock()
    session.post.side_effect = [_status(3), _status(1)]

    with pytest.raises(AsrPollError, match="unexpected transcription status: 1") as excinfo:
        _client(session).poll_result("order-1")

    assert excinfo.value.status == 1
    assert session.post.call_count == 2


def test_poll_vendor_error_and_http_error() -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "300001", "descInfo": "no such order"})
    with pytest.raises(AsrPollError, match="no such order"):
        _client(session).poll_result("order-1")

    session.post.return_value = _response({}, status=502)
    with pytest.raises(AsrPollError) as excinfo:
        _client(session).poll_result("order-1")
    assert excinfo.value.http_status == 502


def test_poll_missing_status_is_unexpected_shape() -> None:
    session = mock.Mock()
    session.post.return_value = _response({"code": "000000", "content": {"orderInfo": {}}})

    with pytest.raises(UnexpectedResponseError):
        _client(session).poll_result("order-1")


def test_poll_non_json_body_is_unexpected_shape() -> None:
    session = mock.Mock()
    response = _response(None)
    response.json.side_effect = ValueError("not json")
    session.post.return_value = response

    with pytest.raises(UnexpectedResponseError):
        _client(session).poll_result("order-1")


def test_poll_cancelled_before_first_attempt() -> None:
    session = mock.Mock()
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(TranscriptionCancelledError):
        _client(session).poll_result("order-1", cancel_event=cancel)

    session.post.assert_not_called()


class _CancelOnWait(threading.Event):
    def wait(self, timeout: float | None = None) -> bool:
        self.set()
        return True


def test_poll_cancelled_while_waiting_is_not_a_timeout() -> None:
    session = mock.Mock()
    session.post.side_effect = lambda *args, **kwargs: _status(3)

    with pytest.raises(TranscriptionCancelledError, match="order-1"):
        _client(session).poll_result("order-1", cancel_event=_CancelOnWait())

    assert session.post.call_count == 1


def test_upload_non_json_body_is_unexpected_shape(audio_file: Path) -> None:
    session = mock.Mock()
    response = _response(None)
    response.json.side_effect = ValueError("not json")
    session.post.return_value = response

    with pytest.raises(UnexpectedResponseError):
        _client(session).upload(audio_file)


def test_upload_missing_code_is_unexpected_shape(audio_file: Path) -> None:
    session = mock.Mock()
    session.post.return_value = _response({"content": {"orderId": "o-1"}})

    with pytest.raises(UnexpectedResponseError):
        _client(session).upload(audio_file)
