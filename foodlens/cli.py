"""Analyze a food photo from the command line.

Usage:
    foodlens-analyze IMAGE [--model M] [--timeout S] [--json] [--metrics] [--log-level L]

Reads GEMINI_API_KEY (and optional GEMINI_* overrides) from the environment
or a .env file in the working directory.

Exit codes:
    0 success
    1 analysis failed
    2 configuration or input error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

import structlog
from dotenv import load_dotenv

from foodlens.application.analysis.session import AnalysisSession, Failed, Succeeded
from foodlens.config import GeminiSettings
from foodlens.domain.analysis.models import AnalysisResult
from foodlens.domain.analysis.ports import IFoodAnalyzer
from foodlens.domain.analysis.service import FoodAnalysisClient
from foodlens.domain.shared.errors import ConfigurationError, EncodingError, InputError
from foodlens.logging_config import configure_logging
from foodlens.metrics.core import registry as metrics_registry

logger = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_ANALYSIS_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="foodlens-analyze",
        description="Send a food photo to Gemini and print its nutrition breakdown.",
    )
    parser.add_argument("image", type=Path, help="Path to the photo (JPEG, PNG, WebP...)")
    parser.add_argument("--model", default=None, help="Override GEMINI_MODEL")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print the in-memory metrics snapshot to stderr after the run",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("FOODLENS_LOG_LEVEL", "WARNING"),
        help="Log level (default: FOODLENS_LOG_LEVEL or WARNING)",
    )
    return parser


def format_report(result: AnalysisResult) -> str:
    """Human-readable summary of one analysis."""
    lines = [
        f"{result.name} ({result.calories} kcal)",
        result.description,
        "",
        "Macros:",
    ]
    lines += [f"  - {m.name}: {m.amount}{m.unit} ({m.percentage}% DV)" for m in result.macros]
    lines.append("Vitamins:")
    lines += [f"  - {v.name}: {v.percentage}% DV ({v.benefit})" for v in result.vitamins]
    lines.append("Ingredients: " + (", ".join(result.ingredients) or "-"))
    lines.append("Allergies: " + (", ".join(result.allergies) or "none"))
    return "\n".join(lines)


async def run(
    image: bytes,
    settings: GeminiSettings,
    *,
    as_json: bool = False,
    client: Optional[IFoodAnalyzer] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Drive one session to a terminal state and print the outcome."""
    out = sys.stdout if out is None else out
    err = sys.stderr if err is None else err
    analyzer = client or FoodAnalysisClient(settings)
    async with AnalysisSession(analyzer) as session:
        session.set_image(image)
        await session.analyze()
        state = session.state

    if isinstance(state, Succeeded):
        if as_json:
            print(json.dumps(state.result.to_wire(), indent=2, ensure_ascii=False), file=out)
        else:
            print(format_report(state.result), file=out)
        return EXIT_OK

    if isinstance(state, Failed):
        print(f"[ERROR] {state.error.user_message}", file=err)
        logger.debug("cli.analysis_failed", error=str(state.error), kind=state.error.kind)
        if isinstance(state.error, (InputError, EncodingError)):
            return EXIT_USAGE
        return EXIT_ANALYSIS_FAILED

    print(f"[ERROR] Analysis ended in unexpected state {type(state).__name__}", file=err)
    return EXIT_ANALYSIS_FAILED


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(Path.cwd() / ".env")
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = GeminiSettings.from_env()
        overrides = {}
        if args.model is not None:
            overrides["model"] = args.model
        if args.timeout is not None:
            overrides["timeout_s"] = args.timeout
        if overrides:
            settings = GeminiSettings.create(**{**settings.model_dump(), **overrides})
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        image = args.image.read_bytes()
    except OSError as e:
        print(f"[ERROR] Cannot read image {args.image}: {e.strerror or e}", file=sys.stderr)
        return EXIT_USAGE

    code = asyncio.run(run(image, settings, as_json=args.json))
    if args.metrics:
        print(json.dumps(metrics_registry.snapshot(), indent=2), file=sys.stderr)
    return code


if __name__ == "__main__":
    sys.exit(main())
