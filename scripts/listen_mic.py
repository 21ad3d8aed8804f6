#!/usr/bin/env -S uv run python
"""Real-time microphone transcription with a local Vosk model.

Captures audio from an input device and prints partial hypotheses (only when
they change) and finalized utterances.

Usage:
    ./listen_mic.py --list-devices
    ./listen_mic.py --device 2 --model model --sample-rate 16000

Dependencies:
    uv pip install sounddevice
"""

import argparse
import queue
import sys

import numpy as np
import sounddevice as sd

from safevosk import Model, NoValidModelError, Recognizer
from safevosk.config import configure, load_settings
from safevosk.stream import StreamSession

CHANNELS = 1
BLOCK_MS = 100


def list_devices() -> None:
    """List available audio input devices."""
    print("\nAvailable audio input devices:")
    print("-" * 50)
    devices = sd.query_devices()
    for i, device in enumerate(devices):
        if device["max_input_channels"] > 0:
            default = " (default)" if i == sd.default.device[0] else ""
            print(f"  [{i}] {device['name']}{default}")
    print("-" * 50)


def run(args) -> int:
    try:
        model = Model(args.model)
    except NoValidModelError as e:
        print(e)
        return 1

    blocks: queue.Queue[np.ndarray] = queue.Queue()

    def audio_callback(indata, frames, time_info, status):
        if status:
            print(f"Audio status: {status}", file=sys.stderr)
        blocks.put(indata[:, 0].copy())

    session = StreamSession(Recognizer(model, args.sample_rate))
    stream = sd.InputStream(
        device=args.device,
        samplerate=args.sample_rate,
        channels=CHANNELS,
        dtype="int16",
        blocksize=int(args.sample_rate * BLOCK_MS / 1000),
        callback=audio_callback,
    )
    device = args.device if args.device is not None else "default"
    print(f"Listening (device: {device}), Ctrl+C to stop")

    try:
        with stream:
            while True:
                event = session.feed(blocks.get())
                if event is not None:
                    print(("> " if event.final else "  ") + event.text)
    except KeyboardInterrupt:
        event = session.finish()
        if event is not None:
            print("> " + event.text)
    return 0


def main() -> int:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Real-time microphone transcription using Vosk")
    parser.add_argument(
        "--device",
        type=int,
        default=None,
        help="Audio input device ID (use --list-devices to see options)",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List available audio input devices and exit",
    )
    parser.add_argument("--model", default=settings.model_path, help="Model directory")
    parser.add_argument(
        "--sample-rate",
        type=float,
        default=settings.sample_rate,
        help=f"Samples per second (default: {settings.sample_rate:g})",
    )
    args = parser.parse_args()

    if args.list_devices:
        list_devices()
        return 0

    configure(settings)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
