"""
Error families raised by the resource engine.

Handlers catch these and turn them into failure outcomes; the class name is
reported back to the host as ``error_type`` so callers can tell a bad
argument from a cluster failure from an unmet expectation.
"""

from __future__ import annotations


class ExtensionError(Exception):
    """Base class for every error the engine reports as a failed outcome."""


class ValidationError(ExtensionError):
    """A required argument is missing or has the wrong shape."""


class ResolutionError(ExtensionError):
    """An argument is present but cannot be interpreted (apiVersion, duration)."""


class CapabilityError(ExtensionError):
    """The resource-access capability failed (network, forbidden, conflict, ...)."""


class NotFoundError(CapabilityError):
    """The target resource does not exist."""


class ExpectationError(ExtensionError):
    """The query succeeded but its result did not match what the caller expected."""


class WaitTimeoutError(ExtensionError):
    """A condition wait timed out or was cancelled."""


class KubeconfigError(ExtensionError):
    """The kubeconfig is unreadable or references entries it does not define."""


class InitializationError(ExtensionError):
    """The resource-access capability could not be configured."""
