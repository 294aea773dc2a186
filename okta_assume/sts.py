"""STS exchanges: SAML assertion to temporary credentials, then role chaining."""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Any

import boto3
from botocore import UNSIGNED
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from okta_assume.errors import DelegationError
from okta_assume.models import Credentials

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-west-2"
SAML_DURATION_SECONDS = 3600

_CODE_MAP = {
    "MalformedPolicyDocument": "policy_error",
    "PackedPolicyTooLarge": "policy_too_large",
    "IDPRejectedClaim": "idp_rejected",
    "InvalidIdentityToken": "invalid_token",
    "ExpiredTokenException": "token_expired",
    "RegionDisabledException": "region_disabled",
    "AccessDenied": "access_denied",
}


def sanitize_session_name(name: str) -> str:
    """Sanitize for STS (2-64 chars, alphanumeric/_+=,.@-)."""
    safe = re.sub(r"[^A-Za-z0-9_+=,.@-]", "-", name)
    safe = re.sub(r"-+", "-", safe).strip("-")
    if len(safe) > 64:
        suffix = hashlib.sha256(name.encode()).hexdigest()[:8]
        safe = safe[:55] + "-" + suffix
    return safe if len(safe) >= 2 else "okta-" + safe


class DelegationClient:
    """Performs the two chained STS calls; no retries beyond botocore's own."""

    def __init__(self, region: str = DEFAULT_REGION) -> None:
        self.region = region

    def _saml_client(self) -> Any:
        # AssumeRoleWithSAML is authenticated by the assertion itself.
        return boto3.client(
            "sts",
            region_name=self.region,
            config=Config(signature_version=UNSIGNED),
        )

    def _role_client(self, credentials: Credentials) -> Any:
        return boto3.client(
            "sts",
            region_name=self.region,
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
        )

    def assume_with_assertion(
        self,
        principal_arn: str,
        role_arn: str,
        raw_assertion: str,
        duration_seconds: int = SAML_DURATION_SECONDS,
    ) -> Credentials:
        """Call STS AssumeRoleWithSAML with the assertion exactly as received."""
        logger.debug("assuming first role with SAML: %s, %s", principal_arn, role_arn)
        try:
            response = self._saml_client().assume_role_with_saml(
                PrincipalArn=principal_arn,
                RoleArn=role_arn,
                SAMLAssertion=raw_assertion,
                DurationSeconds=duration_seconds,
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._failure("error assuming role with SAML", role_arn, exc) from exc
        return Credentials.from_sts(response["Credentials"])

    def assume_role(self, credentials: Credentials, role_arn: str, session_label: str) -> Credentials:
        """Chain from *credentials* into *role_arn*."""
        session_name = sanitize_session_name(f"okta-{session_label}")
        logger.debug("assuming role %s with session %s", role_arn, session_name)
        try:
            response = self._role_client(credentials).assume_role(
                RoleArn=role_arn,
                RoleSessionName=session_name,
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._failure("error assuming role", role_arn, exc) from exc
        logger.info("Assumed role: %s, session=%s", role_arn, session_name)
        return Credentials.from_sts(response["Credentials"])

    @staticmethod
    def _failure(action: str, role_arn: str, exc: Exception) -> DelegationError:
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {})
            error_code = error.get("Code", "Unknown")
            message = error.get("Message", str(exc))
            code = _CODE_MAP.get(error_code, "sts_error")
        else:
            message = str(exc)
            code = "sts_error"
        logger.error("%s: role=%s, error=%s", action, role_arn, message)
        return DelegationError(message, role_arn=role_arn, code=code)
