"""Error taxonomy for pipeline construction.

Collaborator failures (missing files, YAML errors, I/O) are not wrapped here;
they propagate unchanged to the caller.
"""


class CicdError(Exception):
    """Base class for errors raised while constructing a pipeline."""


class ConfigError(CicdError, ValueError):
    """The configuration is incomplete or malformed. Fix the input and retry."""


class UnsupportedSourceType(CicdError, ValueError):
    """The source provider is not one of the known providers."""

    def __init__(self, source_type):
        self.source_type = source_type
        super().__init__(f"Unsupported source type: {source_type!r}")
