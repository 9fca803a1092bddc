"""
launcher/exceptions.py

Error types raised by platform collaborators.
None of these escape the orchestrator; each is absorbed into a default value.
"""


class LaunchGateError(Exception):
    """Base class for launch flow errors."""


class AttributionTokenError(LaunchGateError):
    """The advertising attribution token could not be fetched."""


class MonitorNotBoundError(LaunchGateError):
    """A path update arrived before the monitor was bound to an event loop."""
