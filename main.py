"""Entrypoint: check providers or generate a single lesson section."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from blueprint_emulator.config import build_service_config, load_settings
from blueprint_emulator.llm.types import GenerationError, GenerationRequest, SectionKind
from blueprint_emulator.service import create_generation_service


def _configure_logging() -> None:
    level_name = "DEBUG" if os.getenv("DEBUG", "").lower() == "true" else os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="UE lesson-plan section generator")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("check", help="Probe primary/fallback provider availability")

    gen = subparsers.add_parser("generate", help="Generate one lesson section")
    gen.add_argument("--theme", required=True)
    gen.add_argument("--section", required=True, choices=[kind.value for kind in SectionKind])
    gen.add_argument("--version", default=None, help="Target UE version (defaults to config)")
    gen.add_argument("--snippet", action="append", default=[], help="Reference snippet; repeatable")
    gen.add_argument("--deadline", type=float, default=None, help="Overall deadline in seconds")
    return parser


def main() -> int:
    load_dotenv()
    _configure_logging()
    parser = _build_parser()
    args = parser.parse_args()
    command = args.command or "check"

    try:
        config = build_service_config(load_settings(args.settings))
        with create_generation_service(config) as service:
            if command == "check":
                availability = service.check_availability()
                fallback = availability["fallback"]
                print(f"Primary ({config.primary_provider_id}): {'available' if availability['primary'] else 'unavailable'}")
                if fallback is None:
                    print("Fallback: not configured")
                else:
                    print(f"Fallback ({config.fallback_provider_id}): {'available' if fallback else 'unavailable'}")
                return 0

            request = GenerationRequest.build(
                theme=args.theme,
                target_version=args.version or config.target_version,
                section_kind=args.section,
                reference_snippets=args.snippet,
            )
            result = service.generate_section(request, deadline=args.deadline)
    except GenerationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"provider={result.provider_id} model={result.model} tokens={result.tokens_used} attempts={result.attempts}")
    print(result.content)
    return 0


if __name__ == "__main__":
    sys.exit(main())
