"""Builders and fakes shared by the test modules."""

from __future__ import annotations

import base64
import threading
from datetime import datetime, timezone
from typing import Any

from okta_assume.errors import DelegationError
from okta_assume.models import AuthnResponse, Credentials

ORG = "example"
DUO_HOST = "api-1234abcd.duosecurity.com"
DUO_SIGNATURE = "TX|dHg=|abc:APP|YXBw|def"
DUO_CALLBACK = "https://example.okta.com/api/v1/authn/factors/f1/lifecycle/duoCallback"

P1 = "arn:aws:iam::111111111111:saml-provider/Okta"
R1 = "arn:aws:iam::111111111111:role/Engineer"
P2 = "arn:aws:iam::222222222222:saml-provider/Okta"
R2 = "arn:aws:iam::222222222222:role/ReadOnly"
TARGET_ROLE = "arn:aws:iam::111:role/Target"

EXP1 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
EXP2 = datetime(2026, 1, 1, 13, 0, tzinfo=timezone.utc)
TEMP_CREDS = Credentials("AK1", "SK1", "ST1", EXP1)
FINAL_CREDS = Credentials("AK2", "SK2", "ST2", EXP2)


def saml_xml(role_values: list[str], duration: int | None = None) -> str:
    values = "".join(
        f"<saml2:AttributeValue>{value}</saml2:AttributeValue>" for value in role_values
    )
    session = ""
    if duration is not None:
        session = (
            '<saml2:Attribute Name="https://aws.amazon.com/SAML/Attributes/SessionDuration">'
            f"<saml2:AttributeValue>{duration}</saml2:AttributeValue></saml2:Attribute>"
        )
    return (
        '<saml2p:Response xmlns:saml2p="urn:oasis:names:tc:SAML:2.0:protocol" '
        'xmlns:saml2="urn:oasis:names:tc:SAML:2.0:assertion">'
        "<saml2:Assertion><saml2:AttributeStatement>"
        '<saml2:Attribute Name="https://aws.amazon.com/SAML/Attributes/Role">'
        f"{values}</saml2:Attribute>{session}"
        "</saml2:AttributeStatement></saml2:Assertion></saml2p:Response>"
    )


def saml_raw(pairs: list[tuple[str, str]], duration: int | None = None) -> str:
    xml = saml_xml([f"{principal},{role}" for principal, role in pairs], duration)
    return base64.b64encode(xml.encode()).decode()


def saml_document(raw: str) -> str:
    return (
        "<html><body>"
        '<form id="appForm" method="POST" action="https://signin.aws.amazon.com/saml">'
        f'<input name="SAMLResponse" type="hidden" value="{raw}"/>'
        '<input name="RelayState" type="hidden" value=""/>'
        "</form></body></html>"
    )


def authn(status: str, **fields: Any) -> AuthnResponse:
    payload: dict[str, Any] = {"status": status}
    payload.update(fields)
    return AuthnResponse.model_validate(payload)


def factor(factor_id: str, factor_type: str = "web") -> dict[str, Any]:
    return {"id": factor_id, "factorType": factor_type, "provider": "DUO"}


def mfa_required(*factors: dict[str, Any]) -> AuthnResponse:
    return authn("MFA_REQUIRED", stateToken="state1", _embedded={"factors": list(factors)})


def mfa_challenge(factor_result: str = "WAITING") -> AuthnResponse:
    return authn(
        "MFA_CHALLENGE",
        stateToken="state1",
        factorResult=factor_result,
        _embedded={
            "factor": {
                "id": "f1",
                "factorType": "web",
                "provider": "DUO",
                "_embedded": {
                    "verification": {
                        "host": DUO_HOST,
                        "signature": DUO_SIGNATURE,
                        "_links": {"complete": {"href": DUO_CALLBACK}},
                    }
                },
            }
        },
    )


class FakeTransport:
    """Replays canned results; the last one is repeated once the rest are used."""

    def __init__(self, results: list[Any]) -> None:
        self.results = list(results)
        self.calls: list[dict[str, Any]] = []

    def request(self, method, path, payload=None, decode="json", params=None):
        self.calls.append(
            {"method": method, "path": path, "payload": payload, "decode": decode, "params": params}
        )
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeDelegation:
    def __init__(self, fail_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.saml_calls: list[tuple] = []
        self.role_calls: list[tuple] = []

    def assume_with_assertion(self, principal_arn, role_arn, raw_assertion, duration_seconds=3600):
        self.saml_calls.append((principal_arn, role_arn, raw_assertion, duration_seconds))
        if self.fail_on == role_arn:
            raise DelegationError("AccessDenied", role_arn=role_arn)
        return TEMP_CREDS

    def assume_role(self, credentials, role_arn, session_label):
        self.role_calls.append((credentials, role_arn, session_label))
        if self.fail_on == role_arn:
            raise DelegationError("AccessDenied", role_arn=role_arn, code="access_denied")
        return FINAL_CREDS


class FakePush:
    """Push dispatcher that either waits for cancellation or fails."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.started = threading.Event()
        self.cancelled = threading.Event()
        self.challenges: list[Any] = []

    def __call__(self, challenge):
        self.challenges.append(challenge)
        return self

    def push(self, cancel: threading.Event) -> None:
        self.started.set()
        if self.error is not None:
            raise self.error
        cancel.wait(5)
        if cancel.is_set():
            self.cancelled.set()
