"""
Recipe Learner - command line interface

Extracts recipes from document text files, trains on whole directories of
documents, regenerates the learned pattern set and reports the learning
progress of the example store.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import load_config
from .const import (
    AVAILABLE_MODELS,
    CONF_API_KEY,
    CONF_DATABASE_PATH,
    CONF_MODEL,
)
from .exceptions import RecipeLearnerError
from .models.recipe import FileKind, FileMetadata
from .models.training import summarize
from .services.extraction_service import ExtractionService, create_service

logger = logging.getLogger(__name__)


def _write(payload: str, output: Path | None = None) -> None:
    if output is None:
        print(payload)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(payload, encoding="utf-8")
    logger.info("Saved output to %s", output)


def _cmd_extract(service: ExtractionService, args: argparse.Namespace) -> int:
    path: Path = args.file
    if not path.is_file():
        logger.error("File not found: %s", path)
        return 1

    text = path.read_text(encoding="utf-8")
    metadata = FileMetadata(
        file_name=path.name,
        file_size_bytes=path.stat().st_size,
        file_kind=FileKind(args.file_kind),
    )
    if service.has_example_for_file(path.name):
        logger.info("An example for %s was already recorded", path.name)

    result = service.extract(text, metadata, force_autonomous=True if args.no_fallback else None)
    logger.info(
        "Extracted '%s' with %d%% confidence (source: %s, fallback used: %s)",
        result.recipe.name, result.confidence, result.source.value, result.used_fallback)
    _write(result.model_dump_json(indent=2), args.output)
    return 0


def _cmd_train(service: ExtractionService, args: argparse.Namespace) -> int:
    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Directory not found: %s", directory)
        return 1

    paths = sorted(path for path in directory.glob(args.pattern) if path.is_file())
    if not paths:
        logger.warning("No files matching %s in %s", args.pattern, directory)

    documents = (
        (
            path.read_text(encoding="utf-8", errors="replace"),
            FileMetadata(
                file_name=path.name,
                file_size_bytes=path.stat().st_size,
                file_kind=FileKind(args.file_kind),
            ),
        )
        for path in paths
    )
    report = service.train_bulk(documents)
    logger.info("Trained on %d of %d files", report.processed, report.total_files)
    _write(json.dumps(report.summary(), indent=2, ensure_ascii=False), args.output)
    return 0


def _cmd_learn(service: ExtractionService, args: argparse.Namespace) -> int:
    pattern_set = service.learn_patterns()
    if not pattern_set.learned_from_count:
        logger.warning("No trusted examples to learn from yet")
    _write(pattern_set.model_dump_json(indent=2))
    return 0


def _cmd_stats(service: ExtractionService, args: argparse.Namespace) -> int:
    payload: dict[str, Any] = {
        "stats": service.get_learning_stats().model_dump(mode="json"),
        "autonomy_readiness": service.get_autonomy_readiness().model_dump(mode="json"),
    }
    _write(json.dumps(payload, indent=2))
    return 0


def _cmd_patterns(service: ExtractionService, args: argparse.Namespace) -> int:
    pattern_set = service.get_current_pattern_set()
    if pattern_set is None:
        logger.info("No pattern set learned yet, built-in defaults are in use")
        _write("null")
        return 0
    _write(pattern_set.model_dump_json(indent=2))
    return 0


def _cmd_examples(service: ExtractionService, args: argparse.Namespace) -> int:
    examples = service.list_examples(limit=args.limit, offset=args.offset)
    _write(json.dumps(summarize(examples), indent=2, ensure_ascii=False))
    return 0


COMMANDS = {
    "extract": _cmd_extract,
    "train": _cmd_train,
    "learn": _cmd_learn,
    "stats": _cmd_stats,
    "patterns": _cmd_patterns,
    "examples": _cmd_examples,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recipe-learner",
        description="Extract recipes from document text and learn from accepted results"
    )
    parser.add_argument(
        "--database",
        help="Path of the training database (can also be set via RECIPE_LEARNER_DB env var)"
    )
    parser.add_argument(
        "--api-key",
        help="API key for the fallback model (can also be set via LANGEXTRACT_API_KEY env var)"
    )
    parser.add_argument(
        "--model",
        choices=AVAILABLE_MODELS,
        help="Model to use for fallback extraction"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract a recipe from a text file")
    extract.add_argument("file", type=Path, help="Text converted from the recipe document")
    extract.add_argument(
        "--file-kind",
        choices=[kind.value for kind in FileKind],
        default=FileKind.PDF.value,
        help="Kind of the original document (default: pdf)"
    )
    extract.add_argument(
        "--no-fallback",
        action="store_true",
        help="Never call the fallback extractor"
    )
    extract.add_argument(
        "--output",
        type=Path,
        help="Write the result to this file instead of stdout"
    )

    train = subparsers.add_parser(
        "train", help="Record fallback extractions of every file in a directory")
    train.add_argument("directory", type=Path, help="Directory of converted document texts")
    train.add_argument(
        "--pattern",
        default="*.txt",
        help="Glob pattern for the files to train on (default: *.txt)"
    )
    train.add_argument(
        "--file-kind",
        choices=[kind.value for kind in FileKind],
        default=FileKind.PDF.value,
        help="Kind of the original documents (default: pdf)"
    )
    train.add_argument(
        "--output",
        type=Path,
        help="Write the report to this file instead of stdout"
    )

    subparsers.add_parser("learn", help="Regenerate the learned pattern set")
    subparsers.add_parser("stats", help="Show learning statistics and autonomy readiness")
    subparsers.add_parser("patterns", help="Show the current learned pattern set")

    examples = subparsers.add_parser("examples", help="List recorded training examples")
    examples.add_argument("--limit", type=int, default=50, help="Number of examples (default: 50)")
    examples.add_argument("--offset", type=int, default=0, help="Examples to skip (default: 0)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the recipe learner."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    load_dotenv()

    overrides = {
        CONF_DATABASE_PATH: args.database,
        CONF_API_KEY: args.api_key,
        CONF_MODEL: args.model,
    }
    try:
        config = load_config({key: value for key, value in overrides.items() if value is not None})
        service = create_service(config)
        return COMMANDS[args.command](service, args)
    except RecipeLearnerError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
