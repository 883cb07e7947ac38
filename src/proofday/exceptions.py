# src/proofday/exceptions.py
"""
Custom exceptions for the proofday service.

The goal lifecycle distinguishes four failure families that the HTTP
boundary maps to distinct status codes:

- NotFoundError   -> 404 (referenced goal or user does not exist)
- ValidationError -> 400 (missing or malformed input)
- StateError      -> 409 (transition invalid for the goal's current state)
- UpstreamError   -> 502 (Judge, Attestor or Post-Verifier failed)

NotFoundError, ValidationError and StateError are raised before any
mutation takes place.
"""

from typing import Optional


class ProofDayError(Exception):
    """Base class for all proofday specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in proofday."):
        super().__init__(message)


class ConfigError(ProofDayError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)


class StorageError(ProofDayError):
    """Raised when the goal store backend fails."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)


class NotFoundError(ProofDayError):
    """Raised when a referenced goal (or user) is absent from the store."""
    def __init__(self, goal_id: str, message: str = "Goal not found."):
        self.goal_id = goal_id
        super().__init__(f"{message} Goal ID: '{goal_id}'")


class ValidationError(ProofDayError):
    """Raised for missing or malformed input to a lifecycle operation."""
    def __init__(self, message: str = "Invalid input."):
        super().__init__(message)


class StateError(ProofDayError):
    """
    Raised when a transition is attempted from a state that does not allow it.

    Attributes:
        goal_id: The goal the transition was attempted on.
        current: A short description of the goal's current state.
    """
    def __init__(self, goal_id: str, current: str, message: str = "Invalid transition."):
        self.goal_id = goal_id
        self.current = current
        super().__init__(f"{message} Goal '{goal_id}' is {current}.")


class UpstreamError(ProofDayError):
    """
    Raised when an external collaborator (judge, attestor, post_verifier)
    fails after any allowed retries.

    Attributes:
        collaborator: Name of the failing collaborator.
        retryable: Whether a manual retry of the same request may succeed.
    """
    def __init__(self, collaborator: str = "Unknown", message: str = "Upstream error.",
                 retryable: bool = True, cause: Optional[BaseException] = None):
        self.collaborator = collaborator
        self.retryable = retryable
        self.cause = cause
        super().__init__(f"Error with {collaborator}: {message}")
