#!/usr/bin/env python3
"""
Batch recognition tester for the voice dialer

Runs a recognition session over every WAV file in a directory tree (or a
single file) and prints a report. The expected sentence is the file stem
with underscores as spaces: call_jack_jones.wav -> "call jack jones".

Columns, per directory and in total:
    1/1     one action, and it matches
    1/N     several actions, the first matches
    M/N     several actions, a later one matches
    0/N     actions, none match
    Fail    recognizer gave up or produced no actions
    Error   session error
    Total   files processed

Usage:
    python3 scripts/recognize_audio.py recordings/
    python3 scripts/recognize_audio.py one.wav --verbose
    python3 scripts/recognize_audio.py recordings/ --contacts contacts.json --sample-rate 8000
    python3 scripts/recognize_audio.py recordings/ --json
"""

import os
os.environ['VOICEDIALER_LOG_FILE_ONLY'] = '1'

import sys
import json
import argparse
from collections import OrderedDict
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import List

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from voicedialer.actions import label_of
from voicedialer.config import load_config
from voicedialer.engine import load_factory
from voicedialer.errors import VoiceDialerError
from voicedialer.session import Error, Failure, RecognitionSession, Success


REPORT_FMT = "{:>6} {:>6} {:>6} {:>6} {:>6} {:>6} {:>6} {}"
REPORT_HDR = REPORT_FMT.format("1/1", "1/N", "M/N", "0/N", "Fail", "Error", "Total", "")


def count_string(count: int, total: int) -> str:
    """Integer percentage, or "" when there is nothing to divide by."""
    return f"{100 * count // total}%" if total > 0 else ""


def expected_sentence(path: Path) -> str:
    return " ".join(path.stem.replace("_", " ").split()).lower()


def matches(action, expected: str) -> bool:
    """Display text equals the sentence, or extends it (e.g. "... at home")."""
    text = " ".join(label_of(action).split()).lower()
    return text == expected or text.startswith(expected + " ")


@dataclass
class Tally:
    one_of_one: int = 0
    one_of_n: int = 0
    m_of_n: int = 0
    zero_of_n: int = 0
    fail: int = 0
    error: int = 0
    total: int = 0

    def add(self, other: "Tally"):
        for key, value in asdict(other).items():
            setattr(self, key, getattr(self, key) + value)

    def counts(self) -> List[int]:
        return [self.one_of_one, self.one_of_n, self.m_of_n, self.zero_of_n,
                self.fail, self.error, self.total]


def score(outcome, expected: str) -> Tally:
    tally = Tally(total=1)
    if isinstance(outcome, Error):
        tally.error = 1
    elif isinstance(outcome, Failure):
        tally.fail = 1
    else:
        actions = outcome.actions
        hit = next((i for i, a in enumerate(actions) if matches(a, expected)), None)
        if hit is None:
            tally.zero_of_n = 1
        elif hit > 0:
            tally.m_of_n = 1
        elif len(actions) == 1:
            tally.one_of_one = 1
        else:
            tally.one_of_n = 1
    return tally


def find_wavs(target: Path) -> List[Path]:
    if target.is_file():
        return [target]
    return sorted(p for p in target.rglob("*") if p.suffix.lower() == ".wav")


def describe(outcome) -> str:
    if isinstance(outcome, Success):
        return " | ".join(label_of(a) for a in outcome.actions)
    if isinstance(outcome, Failure):
        return f"FAIL {outcome.reason}"
    return f"ERROR {outcome.detail}"


def print_rows(tally: Tally, name: str):
    counts = tally.counts()
    print(REPORT_FMT.format(*counts, name))
    print(REPORT_FMT.format(*(count_string(c, tally.total) for c in counts), ""))


def main():
    parser = argparse.ArgumentParser(description="Voice dialer batch recognition")
    parser.add_argument("target", help="WAV file or directory tree of WAV files")
    parser.add_argument("--config", help="Config file (default: config.yaml)")
    parser.add_argument("--factory", help="Recognizer factory, module:callable")
    parser.add_argument("--contacts", metavar="FILE", help="JSON contacts file")
    parser.add_argument("--sample-rate", type=int, help="Audio sample rate (Hz)")
    parser.add_argument("--minimize", action="store_true", help="Minimize results")
    parser.add_argument("--no-open", action="store_true", help="Disable open-app entries")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show every file")
    parser.add_argument("--json", action="store_true", help="JSON output")
    args = parser.parse_args()

    target = Path(args.target)
    wavs = find_wavs(target)
    if not wavs:
        print(f"\nNo WAV files under {target}")
        sys.exit(1)

    config = load_config(args.config)
    try:
        factory = load_factory(args.factory) if args.factory else None
        session = RecognitionSession.from_config(config, factory=factory)
    except VoiceDialerError as e:
        print(f"\nCannot start session: {e}")
        sys.exit(1)

    if args.contacts:
        session.set_contacts_file(args.contacts)
    if args.minimize:
        session.set_minimize_results(True)
    if args.no_open:
        session.set_allow_open_entries(False)

    per_dir = OrderedDict()
    results = []
    try:
        for wav in wavs:
            expected = expected_sentence(wav)
            outcome = session.recognize(audio_file=wav, sample_rate=args.sample_rate)
            tally = score(outcome, expected)
            per_dir.setdefault(wav.parent, Tally()).add(tally)
            results.append({"file": str(wav), "expected": expected, "result": describe(outcome)})
            if args.verbose and not args.json:
                print(f"  {wav.name}: {describe(outcome)}")
    finally:
        session.close()

    total = Tally()
    for tally in per_dir.values():
        total.add(tally)

    if args.json:
        output = {
            "directories": {str(d): asdict(t) for d, t in per_dir.items()},
            "total": asdict(total),
            "files": results,
        }
        print(json.dumps(output, indent=2))
        return

    print()
    print(REPORT_HDR)
    for directory, tally in per_dir.items():
        print_rows(tally, str(directory))
    if len(per_dir) > 1:
        print_rows(total, "TOTAL")


if __name__ == "__main__":
    main()
