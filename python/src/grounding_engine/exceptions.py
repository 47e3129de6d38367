"""
Grounding engine exceptions.

Custom exceptions carry the data needed to report the failure, so
callers can log or surface them without re-parsing messages.
"""

from typing import Optional


class GroundingError(Exception):
    """Base exception for all grounding engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CitationParseError(GroundingError):
    """External reference could not be parsed into a checkable form."""

    def __init__(self, reference: str, reason: str):
        self.reference = reference
        self.reason = reason
        super().__init__(f"{reason}: {reference}")


class InvalidStatusTransition(GroundingError):
    """Citation status change would leave a terminal validation state."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move citation from terminal status '{current}' to '{requested}'"
        )


class ExistenceCheckError(GroundingError):
    """External system answered with something other than exists / not found."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class EvidenceIndexError(GroundingError):
    """Evidence index could not be built. No partial index is returned."""


class RoleNotRegisteredError(GroundingError, KeyError):
    """No role metadata implementation is registered under this name."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Role not registered: {role}")

    def __str__(self) -> str:
        return self.message


class RegistryFrozenError(GroundingError):
    """Registration attempted after the registry was frozen."""
