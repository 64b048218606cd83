#!/usr/bin/env python
"""Live pitch analyser — one-command tuner.

Usage
-----
    # Default microphone, general purpose settings
    python scripts/live_tuner.py

    # Guitar preset on a specific input device, smoothed display
    python scripts/live_tuner.py --preset guitar --device 2 --smoothing 0.3

    # Analyse a recording instead of the microphone (one line per frame)
    python scripts/live_tuner.py --file takes/open_a.wav

Settings are read from TUNER_* environment variables (a .env file is
loaded first), then overridden by command-line flags.

Exit codes
----------
    0  — stopped normally (Ctrl-C, --max-ticks, end of file)
    2  — audio device or file could not be opened, or invalid settings
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv  # noqa: E402

from core.config import (  # noqa: E402
    BASS_CONFIG,
    DEFAULT_CONFIG,
    GUITAR_CONFIG,
    VOICE_CONFIG,
    TunerConfig,
)
from ingestion.analysis_loop import AnalysisLoop  # noqa: E402
from ingestion.sinks import ConsoleSink, NoteSink, SmoothingSink  # noqa: E402
from ingestion.spectrum_sources import (  # noqa: E402
    DEFAULT_SAMPLE_RATE,
    FileSpectrumSource,
    MicrophoneSpectrumSource,
)

logger = logging.getLogger("live_tuner")

PRESETS: dict[str, TunerConfig] = {
    "default": DEFAULT_CONFIG,
    "guitar": GUITAR_CONFIG,
    "bass": BASS_CONFIG,
    "voice": VOICE_CONFIG,
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Real-time pitch detection (Harmonic Product Spectrum)")
    p.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default="default",
        help="Instrument preset the other flags override",
    )
    p.add_argument("--file", type=Path, default=None, help="Analyse an audio file instead of the microphone")
    p.add_argument("--device", default=None, help="Input device id or name (see `python -m sounddevice`)")
    p.add_argument("--sample-rate", type=int, default=DEFAULT_SAMPLE_RATE, help="Capture rate in Hz")
    p.add_argument("--fft-size", type=int, default=None, help="Samples per frame (power of two)")
    p.add_argument("--harmonics", type=int, default=None, help="HPS depth (>= 2)")
    p.add_argument("--min-frequency", type=float, default=None, help="No-pitch floor in Hz")
    p.add_argument("--fps", type=float, default=None, help="Analysis ticks per second")
    p.add_argument(
        "--smoothing",
        type=float,
        default=None,
        help="Exponential smoothing factor in (0, 1] for the display; off by default",
    )
    p.add_argument("--max-ticks", type=int, default=None, help="Stop after this many ticks")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> TunerConfig:
    """Preset → TUNER_* environment → command-line flags.

    Raises:
        ValueError: The combined settings are invalid.
    """
    config = TunerConfig.from_env(base=PRESETS[args.preset])
    overrides = {
        name: value
        for name, value in (
            ("fft_size", args.fft_size),
            ("harmonics", args.harmonics),
            ("min_frequency_hz", args.min_frequency),
            ("frame_rate_hz", args.fps),
        )
        if value is not None
    }
    return dataclasses.replace(config, **overrides) if overrides else config


def _parse_device(device: str | None) -> int | str | None:
    if device is None:
        return None
    return int(device) if device.isdigit() else device


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = build_config(args)
    except ValueError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2

    sink: NoteSink = ConsoleSink(overwrite=args.file is None)
    if args.smoothing is not None:
        try:
            sink = SmoothingSink(sink, alpha=args.smoothing, tolerance_cents=config.in_tune_cents)
        except ValueError as exc:
            print(f"Invalid settings: {exc}", file=sys.stderr)
            return 2

    if args.file is not None:
        try:
            source = FileSpectrumSource.open(args.file, fft_size=config.fft_size)
        except (FileNotFoundError, ValueError, RuntimeError) as exc:
            print(f"Cannot analyse {args.file}: {exc}", file=sys.stderr)
            return 2
        AnalysisLoop(source, sink, config).run(args.max_ticks, paced=False)
        return 0

    try:
        microphone = MicrophoneSpectrumSource(
            sample_rate=args.sample_rate,
            fft_size=config.fft_size,
            device=_parse_device(args.device),
        )
    except ValueError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2
    try:
        microphone.start()
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    loop = AnalysisLoop(microphone, sink, config)
    try:
        loop.run(args.max_ticks)
    except KeyboardInterrupt:
        loop.stop()
    finally:
        microphone.stop()
        print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
