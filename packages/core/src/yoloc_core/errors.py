"""Exception hierarchy shared by the core, store and CLI layers."""

from __future__ import annotations


class YolocError(Exception):
    """Base class for every error raised on purpose by yoloc."""


class ConfigError(YolocError):
    """The run configuration is unusable (e.g. a repo slug without owner/name).

    Raised before any check runs. It is the only error that aborts a run.
    """


class CheckError(YolocError):
    """A single check could not produce a result."""


class GraphQLError(YolocError):
    """The GitHub GraphQL API answered, but with an ``errors`` payload."""


class RunCancelled(YolocError):
    """The run was cancelled by the caller between two units of work."""


class VerificationError(YolocError):
    """Image signature verification failed for a reason other than absence."""


class NoSignaturesError(VerificationError):
    """The image has no signatures at all."""
