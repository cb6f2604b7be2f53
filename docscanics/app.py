"""
Main entry point for the DocScanICS command line.
Reads OCR text, extracts the appointment and writes an .ics file.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dateutil import parser as dateutil_parser

from docscanics.ai_client import get_ai_client
from docscanics.assembler import assemble
from docscanics.event_models import NoInputError
from docscanics.ics_generator import write_ics
from docscanics.logging_helper import Log
from docscanics.title_builder import generate_preview_title
from docscanics.title_vocabulary import SettingsVocabularyStore, VocabularyStore, normalize_word


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="docscanics",
        description="Extract an appointment from OCR text and save it as an .ics file",
    )
    ap.add_argument("file", nargs="?", help="Text file to read (default: stdin)")
    ap.add_argument("--output-dir", default=".", help="Directory for the .ics file")
    ap.add_argument("--title-word", help="Vocabulary word to build the title from")
    ap.add_argument("--reference", help="Reference time (ISO 8601) for relative dates")
    ap.add_argument("--no-ai", action="store_true", help="Skip the AI extractor")
    ap.add_argument("--add-word", help="Add a custom title word and exit")
    ap.add_argument("--list-words", action="store_true", help="List title words and exit")
    return ap


def _read_text(path: Optional[str]) -> str:
    if path:
        return Path(path).read_text(encoding="utf-8")
    return sys.stdin.read()


def _parse_reference(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return dateutil_parser.isoparse(value)


def _print_details(appointment) -> None:
    print(f"DATE: {appointment.date_display}")
    print(f"TIME: {appointment.time_display}")
    print(f"LOCATION: {appointment.location_display}")
    print(f"SUMMARY: {appointment.summary}")


def main(argv: Optional[List[str]] = None, vocabulary: Optional[VocabularyStore] = None) -> int:
    """Main entry point for the command line."""
    args = _build_parser().parse_args(argv)
    vocabulary = vocabulary or SettingsVocabularyStore()

    if args.list_words:
        for word in vocabulary.get_all():
            print(word)
        return 0

    if args.add_word:
        if vocabulary.add(args.add_word):
            print(f"Added: {generate_preview_title(normalize_word(args.add_word))}")
            return 0
        print(f"Could not add word: {args.add_word}", file=sys.stderr)
        return 1

    Log.section("DocScanICS")
    Log.info(f"Log file: {Log.get_log_path()}")

    try:
        reference = _parse_reference(args.reference)
    except ValueError as e:
        print(f"Invalid --reference value: {e}", file=sys.stderr)
        return 2

    text = _read_text(args.file)
    ai_client = None if args.no_ai else get_ai_client()

    try:
        result = assemble(text, reference=reference, ai_client=ai_client, title_word=args.title_word)
    except NoInputError:
        print("No text detected. Please try a different selection.", file=sys.stderr)
        return 1

    if result.degraded:
        print("AI extraction unavailable - used local pattern extraction", file=sys.stderr)

    _print_details(result.appointment)

    if result.appointment.start is None:
        print("No date or time found - saving with the default slot", file=sys.stderr)

    ics = result.encode()
    ics_path = write_ics(ics, args.output_dir)
    print(f"Saved: {ics_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
