"""Errors raised while resolving and materializing capability sources.

Each error is fatal for one capability only; the sync engine catches
CapabilitySourceError per capability and continues with the rest.
"""


class CapabilitySourceError(Exception):
    """Base class for per-capability source failures."""


class DescriptorError(CapabilitySourceError):
    """The declared source reference is malformed."""


class FetchError(CapabilitySourceError):
    """A remote source could not be cloned, fetched or checked out."""


class PathNotFoundInRepositoryError(FetchError):
    """The configured subdirectory does not exist in the fetched repository."""

    def __init__(self, subdirectory: str, url: str) -> None:
        self.subdirectory = subdirectory
        self.url = url
        super().__init__(f"Path not found in repository: {subdirectory} (in {url})")


class SourceReadError(CapabilitySourceError):
    """A local source path is missing or unreadable."""
