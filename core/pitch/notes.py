"""
core/pitch/notes.py — Frequency → nearest equal-tempered note.

12-TET reference: A4 = 440 Hz. Octaves are counted from C0, so the note
index is simply the number of semitones above C0:

    half_steps = round(12 · log₂(f / C0))
    octave     = half_steps // 12
    pitch      = NOTE_NAMES[half_steps % 12]
    cents      = 1200 · log₂(f / (C0 · 2^(half_steps / 12)))

Python's floor division and modulo already normalise negative half_steps
(-1 → octave -1, pitch 'B'), so no extra wrap-around is needed.
"""

from __future__ import annotations

import math

from core.pitch.types import NoteReading

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

A4_HZ: float = 440.0
"""Concert pitch reference."""

C0_HZ: float = A4_HZ * 2.0 ** -4.75
"""C in octave 0 (≈16.35 Hz): 4 octaves and 9 semitones below A4."""

NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)

MIN_OCTAVE: int = 0
"""Lowest octave reported. Practical instrument range, not a theoretical limit."""

MAX_OCTAVE: int = 8
"""Highest octave reported (C8 ≈ 4186 Hz is the top piano key)."""


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; semitone boundaries round upwards
    return math.floor(value + 0.5)


def note_frequency(note_name: str, octave: int) -> float:
    """Exact equal-tempered frequency of a named note.

    Examples:
        ('A', 4) → 440.0
        ('C', 0) → 16.35…

    Raises:
        ValueError: If note_name is not one of NOTE_NAMES.
    """
    try:
        pitch_index = NOTE_NAMES.index(note_name)
    except ValueError:
        raise ValueError(
            f"Unknown note name {note_name!r}, valid options: {list(NOTE_NAMES)}"
        ) from None
    half_steps = octave * 12 + pitch_index
    return C0_HZ * 2.0 ** (half_steps / 12)


def frequency_to_note(
    frequency_hz: float,
    *,
    min_octave: int = MIN_OCTAVE,
    max_octave: int = MAX_OCTAVE,
) -> NoteReading | None:
    """Map a frequency to the nearest chromatic note and its cents deviation.

    Args:
        frequency_hz: Measured frequency in Hz.
        min_octave: Lowest octave to report (inclusive).
        max_octave: Highest octave to report (inclusive).

    Returns:
        NoteReading with frequency and cents rounded to 2 decimals, or None
        when there is no stable note to show:
            - frequency_hz <= 0, NaN or infinite
            - the nearest note's octave is outside [min_octave, max_octave]

        None is the normal outcome during silence or noise, not an error.
    """
    if not math.isfinite(frequency_hz) or frequency_hz <= 0:
        return None

    semitones = 12.0 * math.log2(frequency_hz / C0_HZ)
    if not math.isfinite(semitones):
        return None

    half_steps = _round_half_up(semitones)
    octave = half_steps // 12
    if octave < min_octave or octave > max_octave:
        return None

    expected_hz = C0_HZ * 2.0 ** (half_steps / 12)
    cents = 1200.0 * math.log2(frequency_hz / expected_hz)

    return NoteReading(
        note_name=NOTE_NAMES[half_steps % 12],
        octave=octave,
        frequency_hz=round(frequency_hz, 2),
        # + 0.0 turns -0.0 into 0.0
        cents_deviation=round(cents, 2) + 0.0,
    )
