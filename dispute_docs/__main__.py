"""
Command-line entry point.

Usage:
    python -m dispute_docs generate input.json [--store] [--output letter.txt]
    python -m dispute_docs regenerate au_letter_of_demand_1a2b3c4d
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .generator import generate_and_store_document, generate_document, regenerate_document

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dispute_docs",
        description="Generate Australian mechanic dispute documents",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a document from a JSON input file")
    generate.add_argument("input", help="Path to a JSON file with the form input (including document_type)")
    generate.add_argument("--store", action="store_true", help="Persist the document and its input snapshot")
    generate.add_argument("--output", help="Write the document text to this file instead of stdout")

    regenerate = subparsers.add_parser("regenerate", help="Regenerate a stored document under a new filename")
    regenerate.add_argument("filename", help="Stored document filename (without extension)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = _build_parser().parse_args(argv)

    if args.command == "generate":
        input_path = Path(args.input)
        if not input_path.exists():
            logger.error(f"Input file not found: {input_path}")
            print(f"Input file not found: {input_path}", file=sys.stderr)
            return 1
        try:
            raw_input = json.loads(input_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            print(f"Input file is not valid JSON: {e}", file=sys.stderr)
            return 1
        result = generate_and_store_document(raw_input) if args.store else generate_document(raw_input)
    else:
        result = regenerate_document(args.filename)

    if not result.get("success"):
        print(f"Generation failed ({result.get('errorType')}): {result.get('error')}", file=sys.stderr)
        return 1

    if result.get("warning"):
        print(f"Warning: {result['warning']}", file=sys.stderr)

    output = getattr(args, "output", None)
    if output:
        Path(output).write_text(result["documentText"], encoding="utf-8")
        print(f"Wrote {result['filename']} to {output}", file=sys.stderr)
    else:
        print(result["documentText"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
