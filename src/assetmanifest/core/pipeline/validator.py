from __future__ import annotations

"""
Configuration Validation Service.

Turns the layered raw configuration (defaults, environment, CLI
overrides) into a PipelineConfig. Handles type coercion and path
normalization, and collects human-readable warnings for every value it
had to correct.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from assetmanifest.domain.config import (
    BACKEND_BUNNY,
    BACKEND_LOCAL,
    MAX_CONCURRENCY,
    SUPPORTED_BACKENDS,
    PipelineConfig,
    get_default_config,
)
from assetmanifest.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def validate_config(
        config: Any,
        *,
        strict: bool = False,
) -> Tuple[PipelineConfig, List[str]]:
    """
    Validate and normalize a raw configuration mapping.

    Args:
        config: Raw configuration data (usually a dictionary).
        strict: If True, raises on type mismatch instead of coercing.

    Returns:
        Tuple[PipelineConfig, List[str]]: The run configuration and warnings.

    Raises:
        ConfigurationError: A required value is missing, or a value is
            invalid while `strict` is set.
    """
    warnings: List[str] = []
    defaults = get_default_config()

    if not isinstance(config, dict):
        raise ConfigurationError(
            f"Invalid config type: expected dict, received {type(config).__name__}."
        )

    merged: Dict[str, Any] = dict(defaults)
    merged.update({k: v for k, v in config.items() if v is not None})

    string_fields = [
        "backend", "storage_zone", "storage_api_key", "storage_endpoint",
        "local_backend_dir", "root_path", "manifest_name",
        "previous_manifest_source", "cdn_api_key",
    ]
    bool_fields = ["embed_file_urls", "purge_cdn"]
    int_fields = ["concurrency_limit", "max_depth"]

    for field in string_fields:
        merged[field] = _as_str(merged.get(field), defaults.get(field, ""), field, warnings, strict)
    for field in bool_fields:
        merged[field] = _as_bool(merged.get(field), defaults[field], field, warnings, strict)
    for field in int_fields:
        merged[field] = _as_int(merged.get(field), defaults[field], field, warnings, strict)

    # Domain-specific normalization
    merged["backend"] = merged["backend"].lower()
    merged["root_path"] = merged["root_path"].strip("/")
    merged["concurrency_limit"] = _clamp(merged["concurrency_limit"], 1, MAX_CONCURRENCY, "concurrency_limit", warnings)
    merged["max_depth"] = _clamp(merged["max_depth"], 1, 1024, "max_depth", warnings)
    merged["asset_extensions"] = _as_extensions(merged.get("asset_extensions"), warnings, strict)

    content_delivery_base = _optional_str(merged.get("content_delivery_base"))
    local_output_path = _optional_str(merged.get("local_output_path"))

    if merged["embed_file_urls"] and not content_delivery_base:
        warnings.append("Field 'embed_file_urls' requires 'content_delivery_base'; file URLs disabled.")
        merged["embed_file_urls"] = False
    if merged["purge_cdn"] and not (content_delivery_base and merged["cdn_api_key"]):
        warnings.append("Field 'purge_cdn' requires 'content_delivery_base' and 'cdn_api_key'; purge disabled.")
        merged["purge_cdn"] = False

    _check_required(merged)

    cfg = PipelineConfig(
        root_path=merged["root_path"],
        content_delivery_base=content_delivery_base,
        concurrency_limit=merged["concurrency_limit"],
        previous_manifest_source=merged["previous_manifest_source"],
        storage_zone=merged["storage_zone"],
        storage_api_key=merged["storage_api_key"],
        storage_endpoint=merged["storage_endpoint"],
        manifest_name=merged["manifest_name"].strip("/"),
        max_depth=merged["max_depth"],
        embed_file_urls=merged["embed_file_urls"],
        asset_extensions=merged["asset_extensions"],
        purge_cdn=merged["purge_cdn"],
        cdn_api_key=merged["cdn_api_key"],
        local_output_path=local_output_path,
        backend=merged["backend"],
        local_backend_dir=merged["local_backend_dir"],
    )

    for w in warnings:
        logger.debug(f"Config normalization: {w}")
    return cfg, warnings


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: REQUIRED VALUES
# -----------------------------------------------------------------------------

def _check_required(merged: Dict[str, Any]) -> None:
    """Reject configurations the pipeline cannot run with."""
    if merged["backend"] not in SUPPORTED_BACKENDS:
        raise ConfigurationError(
            f"Unsupported backend '{merged['backend']}'. Expected one of {', '.join(SUPPORTED_BACKENDS)}."
        )
    if not merged["root_path"]:
        raise ConfigurationError("A root path is required (ROOT_PREFIX or --root).")
    if merged["backend"] == BACKEND_BUNNY:
        if not merged["storage_zone"] or not merged["storage_api_key"]:
            raise ConfigurationError(
                "The bunny backend needs BUNNY_STORAGE_ZONE and BUNNY_STORAGE_API_KEY."
            )
    if merged["backend"] == BACKEND_LOCAL and not merged["local_backend_dir"]:
        raise ConfigurationError("The local backend needs a directory (--local-dir).")
    if not merged["manifest_name"].strip("/"):
        raise ConfigurationError("The manifest name cannot be empty.")


# -----------------------------------------------------------------------------
# PRIVATE HELPERS: TYPE COERCION
# -----------------------------------------------------------------------------

def _as_str(value: Any, fallback: str, field: str, warnings: List[str], strict: bool) -> str:
    """Validate and sanitize string inputs."""
    if value is None:
        return fallback
    if isinstance(value, str):
        v = value.strip()
        return v if v else fallback

    msg = f"Invalid field '{field}': expected str, received {type(value).__name__}."
    if strict:
        raise ConfigurationError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_bool(value: Any, fallback: bool, field: str, warnings: List[str], strict: bool) -> bool:
    """Coerce various input types into native booleans."""
    if isinstance(value, bool):
        return value
    if value is None:
        return fallback

    if not strict:
        if isinstance(value, (int, float)) and value in (0, 1):
            warnings.append(f"Field '{field}' converted from number {value} to bool.")
            return bool(value)
        if isinstance(value, str):
            s = value.strip().lower()
            if s in ("true", "1", "yes", "y", "on"):
                return True
            if s in ("false", "0", "no", "n", "off"):
                return False

    msg = f"Invalid field '{field}': expected bool, received {type(value).__name__}."
    if strict:
        raise ConfigurationError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _as_int(value: Any, fallback: int, field: str, warnings: List[str], strict: bool) -> int:
    """Coerce ints and numeric strings (environment values) into int."""
    if value is None:
        return fallback
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and not strict:
        try:
            return int(value.strip())
        except ValueError:
            pass

    msg = f"Invalid field '{field}': expected int, received {value!r}."
    if strict:
        raise ConfigurationError(msg)
    warnings.append(f"{msg} Using fallback.")
    return fallback


def _clamp(value: int, low: int, high: int, field: str, warnings: List[str]) -> int:
    if value < low or value > high:
        clamped = min(max(value, low), high)
        warnings.append(f"Field '{field}' value {value} out of range [{low}, {high}]; using {clamped}.")
        return clamped
    return value


def _as_extensions(value: Any, warnings: List[str], strict: bool) -> Optional[Tuple[str, ...]]:
    """Accept a CSV string or list of extensions; None/empty means 'all files'."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        msg = f"Invalid field 'asset_extensions': expected list, received {type(value).__name__}."
        if strict:
            raise ConfigurationError(msg)
        warnings.append(f"{msg} Accepting all files.")
        return None

    out: List[str] = []
    for raw in value:
        if not isinstance(raw, str) or not raw.strip():
            continue
        ext = raw.strip().lower()
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in out:
            out.append(ext)
    return tuple(out) or None
