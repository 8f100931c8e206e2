"""Transcription output schema (validated at the stage boundary).

The engine writes one JSON record per finished job. Field names arrive in
either snake_case or camelCase, and time offsets arrive as numbers,
decimal-seconds strings ("12.5s") or `{seconds, nanos}` objects. Everything is
normalised here so the formatters only ever see floats.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from driveflow.exceptions import InvalidPayloadError


def parse_offset(value: Any) -> float:
    """Convert a time offset into float seconds."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        raise ValueError("boolean is not a time offset")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        raw = value.strip()
        if raw.endswith("s"):
            raw = raw[:-1]
        if not raw:
            return 0.0
        return float(raw)
    if isinstance(value, dict):
        seconds = value.get("seconds", 0) or 0
        nanos = value.get("nanos", value.get("nanoseconds", 0)) or 0
        try:
            return float(int(seconds)) + float(int(nanos)) / 1e9
        except TypeError as exc:
            raise ValueError(f"invalid time offset: {value!r}") from exc
    raise ValueError(f"unsupported time offset: {type(value).__name__}")


Offset = Annotated[float, BeforeValidator(parse_offset)]


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class WordInfo(_Schema):
    start_time: Offset = Field(default=0.0, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: Offset = Field(default=0.0, validation_alias=AliasChoices("end_time", "endTime"))
    word: str = ""


class Alternative(_Schema):
    transcript: str = ""
    confidence: float | None = None
    words: list[WordInfo] = []


class SpeechTranscription(_Schema):
    alternatives: list[Alternative] = []
    language_code: str | None = Field(
        default=None, validation_alias=AliasChoices("language_code", "languageCode")
    )

    @property
    def best(self) -> Alternative | None:
        # First alternative is the highest-confidence hypothesis.
        return self.alternatives[0] if self.alternatives else None


class VideoSegment(_Schema):
    start_time_offset: Offset = Field(
        default=0.0, validation_alias=AliasChoices("start_time_offset", "startTimeOffset")
    )
    end_time_offset: Offset = Field(
        default=0.0, validation_alias=AliasChoices("end_time_offset", "endTimeOffset")
    )


class AnnotationResult(_Schema):
    input_uri: str | None = Field(default=None, validation_alias=AliasChoices("input_uri", "inputUri"))
    segment: VideoSegment | None = None
    speech_transcriptions: list[SpeechTranscription] = Field(
        default=[],
        validation_alias=AliasChoices("speech_transcriptions", "speechTranscriptions"),
    )


class TranscriptionOutput(_Schema):
    annotation_results: list[AnnotationResult] = Field(
        default=[],
        validation_alias=AliasChoices("annotation_results", "annotationResults"),
    )

    @property
    def segments(self) -> list[SpeechTranscription]:
        out: list[SpeechTranscription] = []
        for result in self.annotation_results:
            out.extend(result.speech_transcriptions)
        return out

    @property
    def duration_seconds(self) -> float | None:
        for result in self.annotation_results:
            if result.segment is not None and result.segment.end_time_offset > 0:
                return result.segment.end_time_offset
        last_end: float | None = None
        for seg in self.segments:
            best = seg.best
            if best is None or not best.words:
                continue
            end = best.words[-1].end_time
            if last_end is None or end > last_end:
                last_end = end
        return last_end


def parse_transcription_output(raw: Any, *, name: str = "transcription") -> TranscriptionOutput:
    if not isinstance(raw, dict):
        raise InvalidPayloadError(name, f"expected JSON object, got {type(raw).__name__}")
    try:
        return TranscriptionOutput.model_validate(raw)
    except ValidationError as exc:
        raise InvalidPayloadError(name, str(exc)) from exc
