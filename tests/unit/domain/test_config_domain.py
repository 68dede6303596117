from __future__ import annotations

"""
Unit tests for the Configuration Domain.

Verifies default values, environment variable mapping and the derived
manifest locations of PipelineConfig.
"""

from assetmanifest.domain.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_MANIFEST_NAME,
    PipelineConfig,
    get_default_config,
    load_env_config,
)


def test_default_config_structure() -> None:
    """Verify that the default configuration has every pipeline key."""
    cfg = get_default_config()

    assert cfg["backend"] == "bunny"
    assert cfg["concurrency_limit"] == DEFAULT_CONCURRENCY
    assert cfg["manifest_name"] == DEFAULT_MANIFEST_NAME
    assert cfg["previous_manifest_source"] == "remote"
    assert cfg["embed_file_urls"] is False
    assert cfg["asset_extensions"] is None


def test_load_env_config_maps_deployment_variables() -> None:
    env = {
        "ROOT_PREFIX": "Root",
        "BUNNY_STORAGE_ZONE": " media-zone ",
        "BUNNY_STORAGE_API_KEY": "secret",
        "BUNNY_CDN_BASE": "https://media.b-cdn.net",
        "CRAWL_CONCURRENCY": "12",
        "UNRELATED": "ignored",
    }

    out = load_env_config(env)

    assert out == {
        "root_path": "Root",
        "storage_zone": "media-zone",
        "storage_api_key": "secret",
        "content_delivery_base": "https://media.b-cdn.net",
        "concurrency_limit": "12",
    }


def test_load_env_config_skips_blank_values() -> None:
    assert load_env_config({"ROOT_PREFIX": "   ", "BUNNY_STORAGE_ZONE": ""}) == {}


def test_manifest_locations() -> None:
    cfg = PipelineConfig(root_path="Root/Media", content_delivery_base="https://cdn.example/")

    assert cfg.manifest_path == "Root/Media/manifest.json"
    assert cfg.manifest_cdn_url == "https://cdn.example/Root/Media/manifest.json"
    assert PipelineConfig(root_path="Root").manifest_cdn_url is None
