#!/usr/bin/env python
"""
highlight_search.py

Usage:
    python scripts/highlight_search.py "compressor alarm" --rows 5 --all-matches

- Runs a highlighted query against Solr.
- Maps each hit's snippets onto its positional layer and prints the result as JSON.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv
from pydantic import ValidationError

# Load environment variables
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from hocr_api.core.config import get_settings
from hocr_api.core.errors import CollaboratorUnavailable
from hocr_api.core.providers import get_repository, get_search, reset_providers
from hocr_api.services.highlight import highlighted_search


async def main(args: argparse.Namespace) -> int:
    try:
        # Flags left unset keep the values configured in the environment
        config = get_settings().highlight_config().with_overrides(
            rows=args.rows,
            ignore_duplicates=False if args.all_matches else None,
            parallel_documents=True if args.parallel else None,
        )
    except ValidationError as exc:
        print(f"Invalid options: {exc}", file=sys.stderr)
        return 2

    try:
        response, result = await highlighted_search(args.query, get_search(), get_repository(), config)
    except CollaboratorUnavailable as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await reset_providers()

    print(f"=== {response.num_found} hits for: {args.query!r} ===", file=sys.stderr)
    print(result.model_dump_json(indent=2, exclude_none=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Highlighted search with on-page bounding boxes")
    parser.add_argument("query", help="Full-text query")
    parser.add_argument("--rows", type=int, default=None, help="Maximum number of documents (default: HIGHLIGHT_ROWS)")
    parser.add_argument(
        "--all-matches",
        action="store_true",
        help="Assign words matched by several snippets to every snippet",
    )
    parser.add_argument("--parallel", action="store_true", help="Load documents concurrently")
    return parser


if __name__ == "__main__":
    sys.exit(asyncio.run(main(build_parser().parse_args())))
