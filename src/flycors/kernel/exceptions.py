"""Unified exception hierarchy for flycors.

All engine exceptions inherit from FlyCorsException, enabling unified
error handling across modules.

Categories:
- ConfigurationException: Policy and configuration defects (e.g. PolicyConflict)
- InvalidRequestException: Request data the engine cannot interpret

A denied cross-origin request is *not* an exception: it is an ordinary
decision returned by the engine.
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlyCorsException(Exception):
    """Base exception for all flycors errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "CORS_POLICY_CONFLICT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(FlyCorsException):
    """The configured policy cannot be served as-is."""


class PolicyConflictException(ConfigurationException):
    """Wildcard origin combined with credentials.

    Browsers reject ``Access-Control-Allow-Origin: *`` on credentialed
    requests, so such a policy is refused for every origin.
    """

    def __init__(
        self,
        message: str = "Wildcard origin '*' cannot be combined with allow_credentials=True",
        code: str | None = "CORS_POLICY_CONFLICT",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)


# =============================================================================
# Request Exceptions
# =============================================================================


class InvalidRequestException(FlyCorsException):
    """Request is syntactically valid HTTP but carries unusable CORS data."""


class MalformedRequestException(InvalidRequestException):
    """An ``Access-Control-Request-Headers`` token list could not be parsed."""

    def __init__(
        self,
        message: str,
        code: str | None = "CORS_MALFORMED_REQUEST",
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
