"""Command line entry point."""

import argparse
import json
import sys
from typing import List, Optional

import yaml

from .config import (
    ConfigLoader,
    MirrorConfig,
    MIRROR_CONFIG_EXAMPLE,
    get_settings,
    load_config_from_env
)
from .core import BucketMirror, ChangeRecord, CycleResult
from .exceptions import MirrorError
from .utils.logging import setup_logging, get_logger


def render_example_config() -> str:
    """Render ``MIRROR_CONFIG_EXAMPLE`` as a YAML configuration file."""
    data = MIRROR_CONFIG_EXAMPLE.model_dump(by_alias=True, exclude_none=True)
    data["secretAccessKey"] = MIRROR_CONFIG_EXAMPLE.secret_access_key.get_secret_value()
    return yaml.safe_dump(data, sort_keys=False)


def build_parser() -> argparse.ArgumentParser:
    example = "\n".join("  " + line for line in render_example_config().splitlines())
    parser = argparse.ArgumentParser(
        prog="bucket-mirror",
        description="Mirror an S3 bucket (optionally scoped by prefix) into a local directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s detect --config bucketmirror.yaml          # List modifications only
  %(prog)s sync --config bucketmirror.yaml            # Detect and apply
  %(prog)s sync --working-directory ./mirror --json   # Override the mirror root, JSON output

Example bucketmirror.yaml:
{example}
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {get_settings().version}"
    )
    parser.add_argument(
        "command",
        choices=["detect", "sync"],
        help="detect: report modifications; sync: report and apply them"
    )
    parser.add_argument(
        "--config", "-c",
        help="Configuration file path (default: BUCKETMIRROR_CONFIG_FILE or ./bucketmirror.yaml)"
    )
    parser.add_argument(
        "--working-directory", "-w",
        help="Local mirror root, overriding the configuration"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print modifications as JSON"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)"
    )

    return parser


def load_mirror_config(args: argparse.Namespace) -> MirrorConfig:
    """Resolve the configuration for this invocation."""
    config_file = args.config or get_settings().config_file
    if config_file:
        config = ConfigLoader().load_from_file(config_file)
    else:
        config = load_config_from_env()

    updates = {}
    if args.working_directory:
        updates["working_directory"] = args.working_directory
    if args.command == "sync":
        updates["auto_get_source"] = True
    if updates:
        config = config.model_copy(update=updates)

    return config


def render_modifications(modifications: List[ChangeRecord], as_json: bool = False) -> str:
    if as_json:
        return json.dumps([modification.to_dict() for modification in modifications], indent=2)

    if not modifications:
        return "No modifications"

    lines = []
    for modification in modifications:
        lines.append(
            f"{modification.kind.value:<8} {modification.remote_key} -> {modification.display_path}"
        )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(log_level=args.log_level)
    logger = get_logger("main")
    logger.info("Starting bucket mirror", version=get_settings().version, command=args.command)

    try:
        config = load_mirror_config(args)
        mirror = BucketMirror(config)
        mirror.initialize()
        result: CycleResult = mirror.run_cycle()
    except MirrorError as e:
        logger.error("Mirror cycle failed", error=str(e), error_type=e.__class__.__name__)
        return 1

    print(render_modifications(result.modifications, as_json=args.json))

    if result.applied:
        logger.info(
            "Mirror cycle completed",
            modifications=len(result.modifications),
            downloaded=result.apply_result.downloaded,
            deleted=result.apply_result.deleted
        )
    else:
        logger.info("Mirror cycle completed", modifications=len(result.modifications), applied=False)

    return 0


if __name__ == "__main__":
    sys.exit(main())
