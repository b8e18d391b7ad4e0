"""CLI for building AI-background presentations.

    ai-pptx --name <name> --style "<style>" [--refs img1.png,img2.png] [--output /path]
            [--slides slides.json] [--debug]

Without --slides a five-slide demo deck is built.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import traceback
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ai_pptx.clients.whisk_client import WhiskClient
from ai_pptx.core.deck_builder import DeckBuilder
from ai_pptx.core.style_consistency import StyleConsistencyOrchestrator
from ai_pptx.errors import DeckBuildError
from ai_pptx.models.build import BuildConfig, BuildResult
from ai_pptx.utils.token_store import FileCredentialProvider

EXAMPLE = '  ai-pptx --name test-ai --style "dark minimalist with neon accents"'


def demo_slides() -> List[Dict[str, Any]]:
    return [
        {
            "type": "title",
            "title": "AI-Powered Presentation",
            "subtitle": "Generated with Whisk + python-pptx",
            "date": date.today().strftime("%d.%m.%Y"),
        },
        {
            "type": "content",
            "title": "Key Features",
            "bullets": [
                "AI-generated backgrounds via Whisk API",
                "Style consistency across all slides",
                "Reference image support for brand matching",
                "Automatic gradient fallback when offline",
                "HTML-to-PPTX conversion with precise positioning",
            ],
        },
        {
            "type": "data",
            "title": "Performance Metrics",
            "metrics": [
                {"value": "5s", "label": "Average generation time"},
                {"value": "98%", "label": "Style consistency"},
                {"value": "16:9", "label": "Aspect ratio"},
            ],
            "chartLabel": "Chart placeholder",
        },
        {
            "type": "features",
            "title": "How It Works",
            "features": [
                {"title": "Generate", "description": "AI creates unique backgrounds matching your style"},
                {"title": "Template", "description": "HTML templates with overlay for text readability"},
                {"title": "Assemble", "description": "python-pptx builds the final .pptx file"},
            ],
        },
        {
            "type": "closing",
            "heading": "Thank You",
            "contactLines": [
                "Generated by ai-pptx",
                "Powered by Whisk API + python-pptx",
            ],
        },
    ]


def load_slides_file(path: Path) -> List[Dict[str, Any]]:
    """Read slide descriptors from a JSON list or a {"slides": [...]} object."""
    data = json.loads(path.read_text(encoding="utf-8"))
    slides = data.get("slides") if isinstance(data, dict) else data
    if not isinstance(slides, list) or not slides:
        raise ValueError(f"{path} must contain a non-empty list of slides")
    return slides


def _split_refs(value: Optional[str]) -> List[Path]:
    return [Path(item.strip()) for item in (value or "").split(",") if item.strip()]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-pptx",
        description="Build a presentation with AI-generated, style-consistent backgrounds",
        epilog=f"Example:\n{EXAMPLE}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--name", required=True, help="Presentation name (output directory)")
    parser.add_argument("--style", required=True, help="Style description for background generation")
    parser.add_argument("--refs", default=None, help="Comma-separated reference image paths")
    parser.add_argument("--output", default=None, help="Base output directory (default: current directory)")
    parser.add_argument("--slides", default=None, help="JSON file with slide descriptors (default: demo deck)")
    parser.add_argument("--debug", action="store_true", help="Show full traceback for unexpected errors")
    return parser


async def build_presentation(config: BuildConfig) -> BuildResult:
    """Build a deck with the default Whisk client, token file and collaborators."""
    orchestrator = StyleConsistencyOrchestrator(WhiskClient(), FileCredentialProvider())
    return await DeckBuilder(orchestrator).build(config)


def run_cli(argv: Optional[List[str]] = None) -> BuildResult:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        slides = load_slides_file(Path(args.slides)) if args.slides else demo_slides()
        config = BuildConfig(
            name=args.name,
            style=args.style,
            refs=_split_refs(args.refs),
            slides=slides,
            output_base=Path(args.output).resolve() if args.output else None,
        )
        result = asyncio.run(build_presentation(config))
        print(f"Presentation: {result.pptx_path}")
        return result
    except (ValidationError, ValueError) as e:
        raise SystemExit(f"Invalid input: {e}") from e
    except DeckBuildError as e:
        raise SystemExit(f"Build failed: {e}") from e
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        raise SystemExit(f"Build failed: {e}") from e


def main() -> None:
    run_cli()


if __name__ == "__main__":
    main()
