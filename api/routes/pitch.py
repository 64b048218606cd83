"""
api/routes/pitch.py — Pitch analysis endpoints.

Endpoints:
    POST /pitch/frame  — HPS estimate + note mapping for one spectrum frame
    POST /pitch/note   — Note mapping for a frequency

Both endpoints are pure computations over the request body; they let a
remote capture client (browser Web Audio analyser, embedded recorder)
act as the spectrum source while the DSP runs server-side.
"""

from __future__ import annotations

import dataclasses
import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_tuner_config
from api.schemas.pitch import (
    FrameAnalyzeRequest,
    FrameAnalyzeResponse,
    NoteOut,
    NoteRequest,
    NoteResponse,
)
from core.config import TunerConfig
from core.pitch.analysis import analyze_frame
from core.pitch.notes import frequency_to_note
from core.pitch.tuning import classify_tuning
from core.pitch.types import SpectrumFrame
from infrastructure.metrics import record_api_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pitch", tags=["pitch"])


# ---------------------------------------------------------------------------
# POST /pitch/frame
# ---------------------------------------------------------------------------


@router.post("/frame", response_model=FrameAnalyzeResponse)
def analyze_pitch_frame(
    request: FrameAnalyzeRequest,
    config: TunerConfig = Depends(get_tuner_config),
) -> FrameAnalyzeResponse:
    """Estimate the fundamental of one spectrum frame and map it to a note.

    Args:
        request: Magnitudes, sample rate, scale and optional overrides.

    Returns:
        FrameAnalyzeResponse with the raw estimate and, unless the frame
        is silent or out of range, the nearest note and tuning status.

    Raises:
        422: Malformed frame (negative linear magnitudes, non-finite values)
             or overrides that make the config invalid.
    """
    overrides = {
        name: value
        for name, value in (
            ("harmonics", request.harmonics),
            ("min_frequency_hz", request.min_frequency_hz),
        )
        if value is not None
    }
    try:
        effective = dataclasses.replace(config, **overrides) if overrides else config
        frame = SpectrumFrame.from_magnitudes(
            request.magnitudes, request.sample_rate, scale=request.scale
        )
        analysis = analyze_frame(frame, effective)
    except ValueError as exc:
        record_api_request("frame", "rejected")
        logger.info("Rejected spectrum frame: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    reading = analysis.reading
    record_api_request("frame", "silence" if reading is None else "note")
    return FrameAnalyzeResponse(
        frequency_hz=analysis.frequency_hz,
        note=NoteOut.from_reading(reading) if reading is not None else None,
        tuning=analysis.tuning,
    )


# ---------------------------------------------------------------------------
# POST /pitch/note
# ---------------------------------------------------------------------------


@router.post("/note", response_model=NoteResponse)
def map_frequency(
    request: NoteRequest,
    config: TunerConfig = Depends(get_tuner_config),
) -> NoteResponse:
    """Map a frequency to the nearest note within the configured octaves.

    A frequency with no stable note (<= 0, out of range) is not an error:
    the response simply carries ``note: null``.
    """
    reading = frequency_to_note(
        request.frequency_hz,
        min_octave=config.min_octave,
        max_octave=config.max_octave,
    )
    if reading is None:
        record_api_request("note", "silence")
        return NoteResponse()

    record_api_request("note", "note")
    return NoteResponse(
        note=NoteOut.from_reading(reading),
        tuning=classify_tuning(reading.cents_deviation, config.in_tune_cents),
    )
