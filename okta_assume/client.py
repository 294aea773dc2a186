"""Okta login flow ending in chained AWS role credentials."""

from __future__ import annotations

import logging

from okta_assume.errors import AuthenticationError, NoEligibleRolesError
from okta_assume.mfa import MFAChallenger
from okta_assume.models import AuthStatus, Credentials, FederationAssertion
from okta_assume.roles import RoleSelector, first_role
from okta_assume.sts import SAML_DURATION_SECONDS, DelegationClient
from okta_assume.transport import OktaTransport

logger = logging.getLogger(__name__)


class OktaClient:
    """Authenticates one Okta user and exchanges the SAML assertion for credentials.

    Steps:
      1. username/password against ``api/v1/authn``
      2. Duo push when Okta answers ``MFA_REQUIRED``
      3. SAML assertion from the AWS app, role selection
      4. AssumeRoleWithSAML into the selected role
      5. AssumeRole into the target role
    Each step only runs when the previous one succeeded; any failure aborts
    the whole sequence.
    """

    def __init__(
        self,
        organization: str,
        username: str,
        password: str,
        app_path: str,
        transport: OktaTransport | None = None,
        challenger: MFAChallenger | None = None,
        delegation: DelegationClient | None = None,
        role_selector: RoleSelector = first_role,
        saml_duration: int = SAML_DURATION_SECONDS,
    ) -> None:
        self.organization = organization
        self.username = username
        self.password = password
        self.app_path = app_path
        self.transport = transport or OktaTransport(organization)
        self.challenger = challenger or MFAChallenger(self.transport)
        self.delegation = delegation or DelegationClient()
        self.role_selector = role_selector
        self.saml_duration = saml_duration

    def authenticate(self, role_arn: str, profile: str) -> Credentials:
        """Return credentials for *role_arn*, session named after *profile*."""
        logger.debug("Step: 1")
        state = self.transport.request(
            "POST",
            "api/v1/authn",
            {"username": self.username, "password": self.password},
        )

        logger.debug("Step: 2")
        if state.status is AuthStatus.MFA_REQUIRED:
            state = self.challenger.challenge(state)

        if not state.session_token:
            raise AuthenticationError(self.username, state.status.value)
        logger.info("Okta authentication successful for %s", self.username)

        logger.debug("Step: 3")
        assertion = self.fetch_assertion(state.session_token)
        if not assertion.roles:
            raise NoEligibleRolesError(self.username)
        selected = self.role_selector(assertion.roles)
        logger.info("Selected role %s", selected.role_arn)

        logger.debug("Step: 4")
        temporary = self.delegation.assume_with_assertion(
            selected.principal_arn,
            selected.role_arn,
            assertion.raw,
            self.saml_duration,
        )

        logger.debug("Step: 5")
        return self.delegation.assume_role(temporary, role_arn, profile)

    def fetch_assertion(self, session_token: str) -> FederationAssertion:
        return self.transport.request(
            "GET",
            self.app_path,
            decode="saml",
            params={"onetimetoken": session_token},
        )
