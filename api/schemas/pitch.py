"""
api/schemas/pitch.py — Pydantic request/response schemas for pitch endpoints.

Covers:
    /pitch/frame  — FrameAnalyzeRequest / FrameAnalyzeResponse
    /pitch/note   — NoteRequest / NoteResponse
"""

from pydantic import BaseModel, Field, field_validator

from core.pitch.types import MagnitudeScale, NoteReading, TuningStatus

# ---------------------------------------------------------------------------
# Shared sub-schemas
# ---------------------------------------------------------------------------


class NoteOut(BaseModel):
    """Nearest equal-tempered note for a measured frequency."""

    note: str
    octave: int = Field(..., ge=0)
    label: str
    frequency_hz: float = Field(..., gt=0.0)
    cents: float = Field(..., ge=-50.0, le=50.0)
    frequency_text: str
    cents_text: str

    @classmethod
    def from_reading(cls, reading: NoteReading) -> "NoteOut":
        return cls(
            note=reading.note_name,
            octave=reading.octave,
            label=reading.label,
            frequency_hz=reading.frequency_hz,
            cents=reading.cents_deviation,
            frequency_text=reading.frequency_text,
            cents_text=reading.cents_text,
        )


# ---------------------------------------------------------------------------
# /pitch/frame
# ---------------------------------------------------------------------------


class FrameAnalyzeRequest(BaseModel):
    """One spectrum frame captured by a remote client (e.g. a browser analyser)."""

    magnitudes: list[float] = Field(
        ...,
        min_length=1,
        description="One magnitude per bin. Length must be a power of two.",
    )
    sample_rate: float = Field(
        ..., gt=0.0, allow_inf_nan=False, description="Capture sample rate in Hz."
    )
    scale: MagnitudeScale = Field(
        MagnitudeScale.LINEAR,
        description="'linear' amplitude or 'decibel' (converted as 10^(dB/20)).",
    )
    harmonics: int | None = Field(None, ge=2, description="Override the HPS depth.")
    min_frequency_hz: float | None = Field(
        None, ge=0.0, description="Override the no-pitch frequency floor."
    )

    @field_validator("magnitudes")
    @classmethod
    def length_is_power_of_two(cls, v: list[float]) -> list[float]:
        n = len(v)
        if n & (n - 1):
            raise ValueError(f"magnitudes length must be a power of two, got {n}")
        return v


class FrameAnalyzeResponse(BaseModel):
    """Pitch estimate for one frame. ``note`` is null during silence."""

    frequency_hz: float = Field(..., ge=0.0)
    note: NoteOut | None = None
    tuning: TuningStatus | None = None


# ---------------------------------------------------------------------------
# /pitch/note
# ---------------------------------------------------------------------------


class NoteRequest(BaseModel):
    """A frequency to map to the nearest note."""

    frequency_hz: float


class NoteResponse(BaseModel):
    """``note`` is null when the frequency maps outside the octave range."""

    note: NoteOut | None = None
    tuning: TuningStatus | None = None
