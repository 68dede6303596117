from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration layering
(defaults, environment, command-line overrides), pipeline execution and
result rendering. The process exit code reflects the terminal run state.
"""

import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from assetmanifest.core.pipeline.engine import run_pipeline
from assetmanifest.core.pipeline.setup import create_backend
from assetmanifest.core.pipeline.validator import validate_config
from assetmanifest.core.services.serializer import fingerprint
from assetmanifest.domain.config import get_default_config, load_env_config
from assetmanifest.domain.errors import ConfigurationError, MergeStructureError
from assetmanifest.domain.pipeline_models import PipelineResult
from assetmanifest.infra.logging import LoggingConfig, configure_logging, get_logger, shutdown_logging
from assetmanifest.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 on DONE, non-zero otherwise).
    """
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    log_level = "DEBUG" if args.debug else "INFO"
    configure_logging(LoggingConfig(level=log_level, console=True, log_file=args.log_file), force=True)
    try:
        return _run(args)
    finally:
        shutdown_logging()


def _run(args: Any) -> int:
    if args.print_fingerprint:
        return _print_fingerprint(args.print_fingerprint)

    # 1. Configuration hierarchy: defaults < environment < CLI
    raw_conf = _merge_config(get_default_config(), load_env_config())
    raw_conf = _merge_config(raw_conf, cli_args.args_to_overrides(args))

    try:
        cfg, warnings = validate_config(raw_conf)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIG

    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    # 2. Pipeline execution
    lister, publisher = create_backend(cfg)
    try:
        result = run_pipeline(cfg, lister=lister, publisher=publisher, dry_run=bool(args.dry_run))
    except KeyboardInterrupt:
        logger.warning("Run interrupted; the previous manifest stays live.")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.critical(f"Unexpected pipeline failure: {e}", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILED

    # 3. Output rendering
    if args.json_output:
        print(json.dumps(asdict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result)

    return EXIT_OK if result.ok else EXIT_FAILED

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge known, non-None override values into the base.

    Args:
        base: The primary configuration dictionary.
        overrides: New values to inject.

    Returns:
        Dict[str, Any]: The merged configuration state.
    """
    out = dict(base)
    for k, v in overrides.items():
        if k in base and v is not None:
            out[k] = v
    return out

# -----------------------------------------------------------------------------
# OPERATOR TOOLS
# -----------------------------------------------------------------------------

def _print_fingerprint(path: str) -> int:
    """Print the fingerprint of a local manifest (drift investigation)."""
    if not os.path.isfile(path):
        print(f"ERROR: File not found: {path}", file=sys.stderr)
        return EXIT_CONFIG
    with open(path, "rb") as f:
        data = f.read()
    try:
        print(fingerprint(data))
    except MergeStructureError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILED
    return EXIT_OK

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_human_summary(result: PipelineResult) -> None:
    """
    Format and print the run result to standard output.

    Args:
        result: The pipeline result to render.
    """
    if not result.ok:
        stage = result.failed_stage.value if result.failed_stage else "unknown"
        print(f"FAILED during {stage}: [{result.error_type}] {result.error}", file=sys.stderr)
        print("The previously published manifest was left in place.", file=sys.stderr)
        return

    if result.dry_run:
        print("Dry run completed (nothing published).")
    else:
        print(f"Manifest published and verified: /{result.manifest_path}")

    print(f"Fingerprint: {result.fingerprint}")
    print(f"Directories: {result.directories}")
    print(f"Files: {result.files}")
    print(f"Annotations carried: {result.annotations_carried}")
    if result.annotations_dropped:
        print(f"Annotations dropped (deleted directories): {result.annotations_dropped}")
    print(f"Version: {result.version}")
    if result.local_output_path:
        print(f"Local copy: {result.local_output_path}")
    if result.cdn_purged:
        print("CDN cache purged.")

# -----------------------------------------------------------------------------
# CLI ENTRYPOINT
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
