"""Entrypoint: run guarded generations or normalize model output from the shell."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys

from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from roadmap_coach_ai.ai.client import AiClient
from roadmap_coach_ai.ai.normalizer import normalize_ai_response
from roadmap_coach_ai.config import load_settings
from roadmap_coach_ai.utils import logger_callback

logger = logging.getLogger("roadmap_coach_ai")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Guarded AI generation for the roadmap coach")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("--verbose", action="store_true", help="Log pipeline diagnostics at DEBUG level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Call the model with retries and print the result")
    gen.add_argument("--system", required=True, help="System prompt")
    gen.add_argument("--user", help="User prompt")
    gen.add_argument("--user-file", help="Read the user prompt from a file")
    gen.add_argument("--json", action="store_true", help="Request structured JSON output")
    gen.add_argument("--schema", help="Path to a JSON schema file (implies --json)")
    gen.add_argument("--schema-name", help="Name sent with the JSON schema")
    gen.add_argument("--model", help="Override the configured model")
    gen.add_argument("--request-id", help="Request id used in diagnostics")

    norm = subparsers.add_parser("normalize", help="Normalize model output read from stdin")
    norm.add_argument("--json", action="store_true", help="Salvage a JSON object")
    return parser


def _read_user_prompt(args: argparse.Namespace) -> str:
    if args.user_file:
        return Path(args.user_file).read_text(encoding="utf-8")
    if args.user:
        return args.user
    raise SystemExit("generate: one of --user or --user-file is required")


def _run_generate(args: argparse.Namespace, config: dict) -> int:
    user_prompt = _read_user_prompt(args)
    schema = None
    if args.schema:
        schema = json.loads(Path(args.schema).read_text(encoding="utf-8"))

    level = logging.DEBUG if args.verbose else logging.INFO
    client = AiClient(config, log=logger_callback(logger, level))
    try:
        text = asyncio.run(
            client.generate(
                args.system,
                user_prompt,
                wants_json=bool(args.json or schema is not None),
                schema=schema,
                schema_name=args.schema_name,
                request_id=args.request_id,
                model=args.model,
            )
        )
    except Exception as exc:
        logger.error("generation failed: %s", exc)
        print(f"Generation failed: {exc}", file=sys.stderr)
        return 1
    print(text)
    return 0


def main() -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()

    config = load_settings(args.settings)
    level_name = "DEBUG" if args.verbose else str(config["logging"]["level"]).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "normalize":
        print(normalize_ai_response(sys.stdin.read(), expect_json=args.json))
        return

    sys.exit(_run_generate(args, config))


if __name__ == "__main__":
    main()
