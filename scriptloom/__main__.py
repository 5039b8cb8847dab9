"""
Scriptloom Main Entry Point

Command line interface:

    python -m scriptloom extract <script> [output]
    python -m scriptloom normalize <script> [output]
    python -m scriptloom parse [input] [output_dir]
    python -m scriptloom storyboard [input] [output]
    python -m scriptloom validate <normalized|storyboard> <path>

Every command exits 0 on success and 1 on failure, printing
``<command> failed: <reason>`` to stderr. Output files are written
atomically, so a failed run never leaves a partial document.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from scriptloom import __version__
from scriptloom.core.config import ScriptloomConfig, load_config
from scriptloom.core.constants import MergePolicy
from scriptloom.core.exceptions import ScriptloomError
from scriptloom.core.logging_config import LogLevel, get_logger, setup_logging
from scriptloom.extraction.normalized_parser import NormalizedScriptParser
from scriptloom.extraction.script_normalizer import normalize_script
from scriptloom.llm.registry import create_provider
from scriptloom.models.documents import NormalizedScript, StoryboardBatch, validate_document
from scriptloom.models.proposal import WorldSnapshot
from scriptloom.pipelines.extraction_pipeline import ExtractionPipeline
from scriptloom.pipelines.storyboard_pipeline import StoryboardPipeline
from scriptloom.utils.file_utils import read_json, read_text, write_json, write_json_many

logger = get_logger("main")

DEFAULT_NORMALIZED = "out/normalized.json"
DEFAULT_PARSED_DIR = "out/parsed"

DOCUMENT_MODELS = {
    'normalized': (NormalizedScript, "Normalized script"),
    'storyboard': (StoryboardBatch, "Storyboard batch"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scriptloom",
        description="Scriptloom - grounded entity and storyboard extraction for scripts"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration file (default: scriptloom.config.json)"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Propose entities and timeline events from a raw script")
    extract.add_argument("script", help="Raw script text file")
    extract.add_argument("output", nargs="?", default=f"{DEFAULT_PARSED_DIR}/proposal.json")
    extract.add_argument("--snapshot", type=str, help="JSON file with known characters, locations and items")
    extract.add_argument("--llm", action="store_true", help="Enable the model pass")
    extract.add_argument("--always-llm", action="store_true", help="Run the model pass even without ambiguous phrases")
    extract.add_argument(
        "--policy",
        choices=[p.value for p in MergePolicy],
        help="Which pass wins on duplicate names"
    )

    normalize = commands.add_parser("normalize", help="Split a raw comic script into pages, panels and blocks")
    normalize.add_argument("script", help="Raw script text file")
    normalize.add_argument("output", nargs="?", default=DEFAULT_NORMALIZED)

    parse = commands.add_parser("parse", help="Build storyboard, character and lore trackers deterministically")
    parse.add_argument("input", nargs="?", default=DEFAULT_NORMALIZED)
    parse.add_argument("output_dir", nargs="?", default=DEFAULT_PARSED_DIR)

    storyboard = commands.add_parser("storyboard", help="Compile a grounded storyboard with full panel coverage")
    storyboard.add_argument("input", nargs="?", default=DEFAULT_NORMALIZED)
    storyboard.add_argument("output", nargs="?", default=f"{DEFAULT_PARSED_DIR}/storyboard.v2.json")

    validate = commands.add_parser("validate", help="Validate a document against its schema")
    validate.add_argument("kind", choices=sorted(DOCUMENT_MODELS))
    validate.add_argument("path")

    return parser


def _load_normalized(path: str) -> NormalizedScript:
    return validate_document(NormalizedScript, read_json(path), "Normalized script")


def run_extract(args, config: ScriptloomConfig) -> None:
    text = read_text(args.script)
    snapshot = WorldSnapshot.from_dict(read_json(args.snapshot)) if args.snapshot else None

    if args.llm:
        config.pipeline.enable_llm = True
    if args.always_llm:
        config.pipeline.enable_llm = True
        config.pipeline.always_run_llm = True
    if args.policy:
        config.pipeline.merge_policy = MergePolicy(args.policy)

    proposal = asyncio.run(ExtractionPipeline(config, snapshot=snapshot).extract(text))
    write_json(args.output, proposal.to_dict())

    for warning in proposal.meta.warnings:
        logger.warning(warning)
    print(f"Wrote {args.output} ({len(proposal.new_entities)} new entities)")


def run_normalize(args, config: ScriptloomConfig) -> None:
    raw = read_text(args.script)
    provider = create_provider(config.llm)
    script = asyncio.run(normalize_script(provider, raw))
    write_json(args.output, script.model_dump(mode="json", exclude_none=True))
    print(f"Wrote {args.output} ({len(script.pages)} pages)")


def run_parse(args, config: ScriptloomConfig) -> None:
    script = _load_normalized(args.input)
    bundle = NormalizedScriptParser().parse(script)
    out_dir = Path(args.output_dir)
    written = write_json_many([
        (out_dir / "storyboard.json", bundle.storyboard.model_dump(mode="json")),
        (out_dir / "character-tracker.json", bundle.characters.model_dump(mode="json")),
        (out_dir / "lore-tracker.json", bundle.lore.model_dump(mode="json")),
    ])
    print(f"Wrote {', '.join(str(p) for p in written)}")


def run_storyboard(args, config: ScriptloomConfig) -> None:
    script = _load_normalized(args.input)
    provider = create_provider(config.llm)
    pipeline = StoryboardPipeline(provider, max_evidence_words=config.pipeline.max_evidence_words)
    batch = asyncio.run(pipeline.compile(script))
    write_json(args.output, batch.model_dump(mode="json", exclude_none=True))
    print(f"Wrote {args.output} ({len(batch.coverage)} panels)")


def run_validate(args, config: ScriptloomConfig) -> None:
    model, label = DOCUMENT_MODELS[args.kind]
    validate_document(model, read_json(args.path), label)
    print(f"{args.path}: valid {args.kind} document")


COMMANDS = {
    'extract': run_extract,
    'normalize': run_normalize,
    'parse': run_parse,
    'storyboard': run_storyboard,
    'validate': run_validate,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Scriptloom CLI."""
    args = build_parser().parse_args(argv)

    if args.debug:
        log_level = LogLevel.DEBUG
    elif args.verbose:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.WARNING
    setup_logging(level=log_level, verbose=args.debug)

    try:
        config = load_config(Path(args.config) if args.config else None)
        if config.verbose_logging and not (args.debug or args.verbose):
            setup_logging(level=LogLevel.INFO)
        COMMANDS[args.command](args, config)
    except ScriptloomError as e:
        print(f"{args.command} failed: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"{args.command} failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
