from __future__ import annotations

from enum import IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_CODE = "000000"
DEFAULT_SPEAKER = "S0"


class OrderStatus(IntEnum):
    """Order states the client understands; anything else is fatal."""

    PROCESSING = 3
    COMPLETE = 4


class _VendorModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class UploadContent(_VendorModel):
    order_id: Optional[str] = Field(None, alias="orderId")


class UploadResponse(_VendorModel):
    """Body returned by ``/v1/upload``."""

    code: str
    desc_info: Optional[str] = Field(None, alias="descInfo")
    content: Optional[UploadContent] = None


class OrderInfo(_VendorModel):
    status: int


class VendorSentence(_VendorModel):
    """One recognised sentence as emitted by the vendor."""

    speaker_id: Optional[Union[str, int]] = Field(None, alias="speakerId")
    text: Optional[str] = None
    begin_time: Optional[float] = Field(None, alias="beginTime")
    end_time: Optional[float] = Field(None, alias="endTime")


class OrderResult(_VendorModel):
    sentences: list[VendorSentence] = Field(default_factory=list)


class ResultContent(_VendorModel):
    order_info: OrderInfo = Field(..., alias="orderInfo")
    order_result: Optional[OrderResult] = Field(None, alias="orderResult")


class ResultResponse(_VendorModel):
    """Body returned by ``/v1/getResult``."""

    code: str
    desc_info: Optional[str] = Field(None, alias="descInfo")
    content: Optional[ResultContent] = None


class ResultEnvelope(_VendorModel):
    """Minimal view used to check the vendor code before the full shape is validated."""

    code: str
    desc_info: Optional[str] = Field(None, alias="descInfo")


class TranscriptSegment(BaseModel):
    """A single speaker-tagged line of the transcript."""

    speaker: str = Field(..., description="Speaker label assigned by the vendor.")
    text: str = Field(..., description="Trimmed sentence text.")
    start_time: Optional[float] = Field(None, description="Sentence start as reported by the vendor.")
    end_time: Optional[float] = Field(None, description="Sentence end as reported by the vendor.")


class TranscriptionResult(BaseModel):
    """Terminal value of a transcription run."""

    text: str
    segments: list[TranscriptSegment] = Field(default_factory=list)
    order_id: str

    model_config = ConfigDict(frozen=True)
