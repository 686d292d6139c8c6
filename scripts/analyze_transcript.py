#!/usr/bin/env python3
"""
Run filler-word and pace analysis on a transcript.

Usage:
  # Plain text file, spoken over 60 seconds
  python scripts/analyze_transcript.py talk.txt --duration 60

  # Inline text
  python scripts/analyze_transcript.py --text "um so I like uh went there" --duration 3

  # JSON list of {"transcript": "...", "duration_seconds": 42}
  python scripts/analyze_transcript.py samples.json --json
"""
import argparse
import json
import os
import sys

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.feedback import feedback_from_analysis
from core.pace import InvalidArgumentError


def load_samples(path: str):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError("Samples JSON must be a list of items")
    return data


def print_result(label: str, result: dict) -> None:
    pace = result["analysis"]["pace"]
    fillers = result["analysis"]["fillers"]
    print(f"{label}:")
    print(f"  Words: {pace['words']}  WPM: {pace['wpm']:.1f}  Pace: {pace['label']} (score {pace['score']})")
    print(f"  Fillers: {fillers['count']} {fillers['words']}")
    print(f"  Feedback [{result['feedback_type']}]: {result['feedback']}")


def main():
    parser = argparse.ArgumentParser(description="Filler-word and pace analysis for transcripts")
    parser.add_argument("path", nargs="?", help="Transcript text file, or samples JSON with --json")
    parser.add_argument("--text", default=None, help="Transcript given inline instead of a file")
    parser.add_argument("--duration", type=float, default=None, help="Elapsed speaking time in seconds")
    parser.add_argument("--json", action="store_true", help="Treat path as a JSON list of samples")
    args = parser.parse_args()

    if args.json:
        if not args.path:
            parser.error("--json requires a path")
        failures = 0
        for i, item in enumerate(load_samples(args.path)):
            label = item.get("id") or str(i)
            try:
                result = feedback_from_analysis(item.get("transcript") or "", item.get("duration_seconds", 0))
            except InvalidArgumentError as e:
                print(f"{label}: skipped ({e})", file=sys.stderr)
                failures += 1
                continue
            print_result(label, result)
        return 1 if failures else 0

    if args.text is not None:
        transcript = args.text
    elif args.path:
        with open(args.path, "r", encoding="utf-8") as f:
            transcript = f.read().strip()
    else:
        parser.error("give a transcript file or --text")
    if args.duration is None:
        parser.error("--duration is required")

    try:
        result = feedback_from_analysis(transcript, args.duration)
    except InvalidArgumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    print_result("text" if args.text is not None else args.path, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
