"""Okta authn wire models and the value objects passed between components."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SUPPORTED_FACTOR_TYPE = "web"


class AuthStatus(str, enum.Enum):
    """Okta authentication transaction states.

    Decoding a response with any other status fails, so a new provider
    state surfaces as an error instead of being treated as one of these.
    """

    UNAUTHENTICATED = "UNAUTHENTICATED"
    PASSWORD_WARN = "PASSWORD_WARN"
    PASSWORD_EXPIRED = "PASSWORD_EXPIRED"
    RECOVERY = "RECOVERY"
    RECOVERY_CHALLENGE = "RECOVERY_CHALLENGE"
    PASSWORD_RESET = "PASSWORD_RESET"
    LOCKED_OUT = "LOCKED_OUT"
    MFA_ENROLL = "MFA_ENROLL"
    MFA_ENROLL_ACTIVATE = "MFA_ENROLL_ACTIVATE"
    MFA_REQUIRED = "MFA_REQUIRED"
    MFA_CHALLENGE = "MFA_CHALLENGE"
    SUCCESS = "SUCCESS"


class _OktaModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Link(_OktaModel):
    href: str


class VerificationLinks(_OktaModel):
    complete: Link


class Verification(_OktaModel):
    host: str
    signature: str
    links: VerificationLinks = Field(alias="_links")


class FactorEmbedded(_OktaModel):
    verification: Verification | None = None


class Factor(_OktaModel):
    id: str
    factor_type: str = Field(alias="factorType")
    provider: str = ""
    embedded: FactorEmbedded = Field(default_factory=FactorEmbedded, alias="_embedded")

    @property
    def supported(self) -> bool:
        return self.factor_type == SUPPORTED_FACTOR_TYPE


class AuthnEmbedded(_OktaModel):
    factors: list[Factor] = Field(default_factory=list)
    factor: Factor | None = None


class AuthnResponse(_OktaModel):
    """One snapshot of the user's authentication state as returned by Okta."""

    status: AuthStatus
    state_token: str | None = Field(default=None, alias="stateToken")
    session_token: str | None = Field(default=None, alias="sessionToken")
    factor_result: str | None = Field(default=None, alias="factorResult")
    embedded: AuthnEmbedded = Field(default_factory=AuthnEmbedded, alias="_embedded")

    @property
    def factors(self) -> list[Factor]:
        return self.embedded.factors

    @property
    def verification(self) -> Verification | None:
        factor = self.embedded.factor
        if factor is None:
            return None
        return factor.embedded.verification


@dataclass(frozen=True)
class Credentials:
    """Immutable AWS credentials returned by STS."""

    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime

    @classmethod
    def from_sts(cls, payload: dict[str, Any]) -> "Credentials":
        expiration = payload["Expiration"]
        if isinstance(expiration, datetime) and expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        return cls(
            access_key_id=payload["AccessKeyId"],
            secret_access_key=payload["SecretAccessKey"],
            session_token=payload["SessionToken"],
            expiration=expiration,
        )

    def __repr__(self) -> str:
        return (
            f"Credentials(access_key_id={self.access_key_id[:8]}***, "
            f"expiration={self.expiration.isoformat()})"
        )


@dataclass(frozen=True)
class RoleCandidate:
    principal_arn: str
    role_arn: str

    @property
    def account_id(self) -> str:
        return self.role_arn.split(":")[4]

    @property
    def role_name(self) -> str:
        return self.role_arn.split("/")[-1]


@dataclass(frozen=True)
class FederationAssertion:
    """A fetched SAML assertion.

    ``raw`` is the SAMLResponse value exactly as Okta returned it; STS must
    receive it unchanged.
    """

    raw: str
    roles: tuple[RoleCandidate, ...] = ()
