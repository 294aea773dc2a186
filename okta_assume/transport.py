"""HTTP access to the Okta organization."""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import ValidationError

from okta_assume import saml
from okta_assume.errors import TransportError
from okta_assume.models import AuthnResponse, FederationAssertion

logger = logging.getLogger(__name__)

OKTA_SERVER = "okta.com"
DEFAULT_TIMEOUT = 30

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
}


class OktaTransport:
    """Issues single requests against ``https://{organization}.{server}``.

    Every call gets its own ``requests.Session`` and therefore its own cookie
    jar; multi-step flows are correlated through the state/session tokens.
    """

    def __init__(
        self,
        organization: str,
        server: str = OKTA_SERVER,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.organization = organization
        self.server = server
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"https://{self.organization}.{self.server}"

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        decode: str = "json",
        params: dict[str, str] | None = None,
    ) -> AuthnResponse | FederationAssertion:
        """Send one request and decode the response.

        ``decode="json"`` validates the body as an Okta authn response,
        ``decode="saml"`` hands the body to the SAML assertion extractor.
        Query *params* are kept out of logged and reported URLs.
        """
        url = self.url_for(path)
        headers = JSON_HEADERS if decode == "json" else None

        with requests.Session() as session:
            try:
                response = session.request(
                    method,
                    url,
                    json=payload,
                    params=params,
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                raise TransportError(f"{method} {url}: {exc}", method=method, url=url) from exc

            logger.debug("%s %s -> %s", method, url, response.status_code)
            if not 200 <= response.status_code < 300:
                status = f"{response.status_code} {response.reason}".strip()
                raise TransportError(
                    f"{method} {url}: {status}", method=method, url=url, status=status
                )

            if decode == "json":
                return self._decode_json(method, url, response)
            return saml.parse_assertion(response.text)

    @staticmethod
    def _decode_json(method: str, url: str, response: requests.Response) -> AuthnResponse:
        try:
            return AuthnResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TransportError(
                f"{method} {url}: cannot decode response: {exc}", method=method, url=url
            ) from exc
