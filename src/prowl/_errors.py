"""Prowl error hierarchy.

All prowl-specific errors inherit from ProwlError for easy catching.
"""


class ProwlError(Exception):
    """Base error for all prowl operations."""


class ConfigError(ProwlError):
    """Invalid or missing configuration or build description."""


class InvariantError(ProwlError):
    """The build produced an internally inconsistent output graph.

    Always fatal.  Raised when a referenced output is missing or when an
    assembled route table violates the phase ordering contract.
    """


class ExportError(ProwlError):
    """Error while writing the deployment configuration document."""
