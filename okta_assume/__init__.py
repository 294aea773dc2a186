"""Okta + Duo login producing chained AWS STS credentials."""

from okta_assume.client import OktaClient
from okta_assume.errors import (
    AuthenticationError,
    DelegationError,
    MFAChallengeError,
    MFATimeoutError,
    NoEligibleRolesError,
    OktaAssumeError,
    TransportError,
    UnsupportedFactorError,
)
from okta_assume.models import Credentials

__all__ = [
    "AuthenticationError",
    "Credentials",
    "DelegationError",
    "MFAChallengeError",
    "MFATimeoutError",
    "NoEligibleRolesError",
    "OktaAssumeError",
    "OktaClient",
    "TransportError",
    "UnsupportedFactorError",
]
