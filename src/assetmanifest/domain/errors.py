from __future__ import annotations

"""
Manifest Error Taxonomy.

Every failure the publish cycle can report derives from ManifestError so
the orchestrator can trap the whole family at the top of a run.
"""


class ManifestError(Exception):
    """Base exception for all manifest pipeline errors."""

    pass


class ConfigurationError(ManifestError):
    """Missing or unusable runtime configuration."""

    pass


class ListingError(ManifestError):
    """Remote read failure (transport, auth or payload) during a crawl."""

    pass


class PathNotFoundError(ListingError):
    """The listed path does not exist in the backend."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Path not found in backend: '{path}'")
        self.path = path


class EmptyRootError(ManifestError):
    """The crawl root path is unreachable."""

    pass


class DepthExceededError(ManifestError):
    """The backend hierarchy is deeper than the configured crawl limit."""

    pass


class MergeStructureError(ManifestError):
    """
    A previously published manifest is not a valid tree.

    The pipeline degrades on this error (treats the previous manifest as
    absent) instead of aborting the run.
    """

    pass


class PublishError(ManifestError):
    """The backend rejected the manifest upload."""

    pass


class PublishDriftError(ManifestError):
    """The published bytes do not fingerprint like the local bytes."""

    def __init__(self, local_fingerprint: str, remote_fingerprint: str) -> None:
        super().__init__(
            f"Published manifest drifted: local={local_fingerprint} remote={remote_fingerprint}"
        )
        self.local_fingerprint = local_fingerprint
        self.remote_fingerprint = remote_fingerprint
