"""Exceptions raised while turning an Okta login into AWS credentials."""

from __future__ import annotations


class OktaAssumeError(Exception):
    """Base class for every failure of the authentication sequence."""


class ConfigError(OktaAssumeError):
    """Raised when configuration values are missing or malformed."""


class TransportError(OktaAssumeError):
    """Raised when an Okta request fails or its response cannot be decoded."""

    def __init__(self, message: str, method: str = "", url: str = "", status: str = "") -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status = status


class SAMLError(OktaAssumeError):
    """Raised when the federation document holds no usable SAML assertion."""


class AuthenticationError(OktaAssumeError):
    def __init__(self, username: str, status: str = "") -> None:
        message = f"authentication failed for {username}"
        if status:
            message = f"{message} (status {status})"
        super().__init__(message)
        self.username = username
        self.status = status


class UnsupportedFactorError(OktaAssumeError):
    def __init__(self, factor_type: str) -> None:
        super().__init__(f"factor {factor_type} not supported")
        self.factor_type = factor_type


class MFAChallengeError(OktaAssumeError):
    """Raised when the out-of-band challenge is rejected or cannot be sent."""


class DuoError(MFAChallengeError):
    """Raised by the Duo frame API client."""


class MFATimeoutError(OktaAssumeError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"MFA approval not received within {timeout:g}s")
        self.timeout = timeout


class NoEligibleRolesError(OktaAssumeError):
    def __init__(self, username: str) -> None:
        super().__init__(f"no AWS roles found for user {username}")
        self.username = username


class DelegationError(OktaAssumeError):
    """Raised when an STS exchange fails; carries the role that was attempted."""

    def __init__(self, message: str, role_arn: str, code: str = "sts_error") -> None:
        super().__init__(f"error assuming role {role_arn}: {message}")
        self.role_arn = role_arn
        self.code = code
