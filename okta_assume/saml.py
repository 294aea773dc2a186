"""SAML assertion extraction for the Okta AWS app."""

from __future__ import annotations

import base64
import binascii
import xml.etree.ElementTree as ET

from bs4 import BeautifulSoup

from okta_assume.errors import SAMLError
from okta_assume.models import FederationAssertion, RoleCandidate

SAML_ROLE_ATTRIBUTE = "https://aws.amazon.com/SAML/Attributes/Role"

_NS = "{urn:oasis:names:tc:SAML:2.0:assertion}"


def extract_saml_response(html):
    """Return the SAMLResponse form value from *html*, or None."""
    soup = BeautifulSoup(html, "lxml")
    tag = soup.find("input", {"name": "SAMLResponse"})
    if not tag or not tag.get("value"):
        return None
    return tag["value"]


def parse_saml_roles(saml_assertion):
    """Decode the base64 SAML assertion and return its roles in document order.

    Raises SAMLError when the assertion is not base64-encoded XML.
    """
    try:
        saml_xml = base64.b64decode(saml_assertion, validate=False)
        root = ET.fromstring(saml_xml)
    except (binascii.Error, ValueError, ET.ParseError) as exc:
        raise SAMLError(f"cannot decode SAML assertion: {exc}") from exc

    roles = []
    for attr in root.iter(f"{_NS}Attribute"):
        if attr.get("Name", "") != SAML_ROLE_ATTRIBUTE:
            continue
        for value_el in attr.iter(f"{_NS}AttributeValue"):
            text = (value_el.text or "").strip()
            if not text:
                continue
            candidate = _parse_role_value(text)
            if candidate:
                roles.append(candidate)

    return roles


def _parse_role_value(text):
    """Parse a single Role attribute value.

    The value is a comma-separated pair of ARNs:
    ``arn:aws:iam::ACCT:saml-provider/P,arn:aws:iam::ACCT:role/R``
    or in reverse order.  Returns None if the value cannot be parsed.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        return None

    role_arn = next((p for p in parts if ":role/" in p), None)
    principal_arn = next((p for p in parts if ":saml-provider/" in p), None)

    if not role_arn or not principal_arn:
        return None

    return RoleCandidate(principal_arn=principal_arn, role_arn=role_arn)


def parse_assertion(document: str) -> FederationAssertion:
    """Build a FederationAssertion from the HTML served by the Okta AWS app."""
    raw = extract_saml_response(document)
    if raw is None:
        raise SAMLError(
            "Could not find SAMLResponse in Okta response. "
            "Verify that 'app_path' points at the AWS SAML app."
        )
    roles = parse_saml_roles(raw)
    return FederationAssertion(raw=raw, roles=tuple(roles))
