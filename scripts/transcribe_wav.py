#!/usr/bin/env -S uv run python
"""Transcribe a WAV file with a Vosk model.

The file must be mono 16-bit PCM; its sample rate is passed to the recognizer.

Usage:
    ./transcribe_wav.py hello.wav --model model
    ./transcribe_wav.py digits.wav --vocabulary "o zero one two three four five six seven eight nine ten"

Environment variables:
    VOSK_MODEL_PATH  default model directory
    VOSK_LIBRARY     libvosk build to use instead of the bundled one
"""

import argparse
import sys
import wave

import numpy as np

from safevosk import Model, NoValidModelError, Recognizer
from safevosk.config import configure, load_settings

FRAMES_PER_READ = 1024


def read_chunks(wf: wave.Wave_read):
    """Yield int16 chunks until the file is exhausted."""
    while True:
        data = wf.readframes(FRAMES_PER_READ)
        if not data:
            return
        yield np.frombuffer(data, dtype="<i2")


def main() -> int:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Transcribe a mono PCM16 WAV file")
    ap.add_argument("wav", nargs="?", default="hello.wav", help="WAV file to transcribe")
    ap.add_argument("--model", default=settings.model_path, help="Model directory")
    ap.add_argument(
        "--vocabulary",
        default=None,
        help="Space-separated words to restrict recognition to (lookahead models only)",
    )
    args = ap.parse_args()

    configure(settings)

    try:
        wf = wave.open(args.wav, "rb")
    except (OSError, wave.Error) as e:
        print(f"Could not open {args.wav}: {e}")
        return 1

    with wf:
        if wf.getnchannels() != 1 or wf.getsampwidth() != 2:
            print("Audio file must be WAV format mono PCM.")
            return 1

        try:
            model = Model(args.model)
        except NoValidModelError as e:
            print(e)
            return 1

        rate = float(wf.getframerate())
        if args.vocabulary:
            recognizer = Recognizer.with_vocabulary(model, rate, args.vocabulary)
        else:
            recognizer = Recognizer(model, rate)

        last_partial = ""
        with recognizer:
            for chunk in read_chunks(wf):
                if recognizer.accept_waveform(chunk):
                    print(f"Result: {recognizer.final_result().to_dict()}")
                else:
                    partial = recognizer.partial_result().partial
                    if partial != last_partial:
                        last_partial = partial
                        print(f"Partial: {partial!r}")
            print(f"Final result: {recognizer.final_result().to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
