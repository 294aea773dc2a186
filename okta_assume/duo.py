"""Duo Push dispatch through the Duo frame API.

Okta hands out the Duo host, the signed request and a callback URL when the
"web" factor is challenged.  The client below drives the same requests the
Duo iframe would: open a frame session, trigger a push, wait for the user to
approve it and post the signed response back to Okta.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

import requests
from bs4 import BeautifulSoup

from okta_assume.errors import DuoError

logger = logging.getLogger(__name__)

DUO_API_VERSION = "2.6"
DUO_POLL_INTERVAL = 2
DEFAULT_TIMEOUT = 30

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
    "Accept": "text/plain, */*; q=0.01",
    "X-Requested-With": "XMLHttpRequest",
}


@dataclass(frozen=True)
class DuoChallenge:
    host: str
    signature: str
    callback: str
    state_token: str

    def split_signature(self) -> tuple[str, str]:
        """Return the (TX, APP) halves of the signed request."""
        tx, sep, app = self.signature.partition(":")
        if not sep or not tx or not app:
            raise DuoError("malformed Duo signature")
        return tx, app


class DuoClient:
    """Sends one Duo Push and reports its outcome back to Okta."""

    def __init__(
        self,
        challenge: DuoChallenge,
        poll_interval: float = DUO_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.challenge = challenge
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.session = session or requests.Session()

    def push(self, cancel: threading.Event) -> None:
        """Run the whole push flow; returns once Okta accepted the callback.

        Raises DuoError when Duo denies the push or answers unexpectedly.
        Returns early, without calling back, when *cancel* is set.
        """
        tx, app = self.challenge.split_signature()
        try:
            sid = self.do_auth(tx)
            txid = self.do_prompt(sid)
            cookie = self.do_status(sid, txid, cancel)
            if cookie is None:
                logger.debug("Duo push cancelled")
                return
            self.do_callback(f"{cookie}:{app}")
        except requests.RequestException as exc:
            raise DuoError(f"Duo request failed: {exc}") from exc
        finally:
            self.session.close()

    def _url(self, path: str) -> str:
        return f"https://{self.challenge.host}{path}"

    def do_auth(self, tx: str) -> str:
        """Open a Duo frame session and return its sid."""
        resp = self.session.post(
            self._url("/frame/web/v1/auth"),
            params={"tx": tx, "parent": self.challenge.callback, "v": DUO_API_VERSION},
            data={
                "parent": self.challenge.callback,
                "java_version": "",
                "flash_version": "",
                "screen_resolution_width": "1920",
                "screen_resolution_height": "1080",
                "color_depth": "24",
            },
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Origin": self._url(""),
            },
            allow_redirects=True,
            timeout=self.timeout,
        )
        resp.raise_for_status()

        query = parse_qs(urlparse(resp.url).query)
        if query.get("sid"):
            return query["sid"][0]

        soup = BeautifulSoup(resp.text, "lxml")
        tag = soup.find("input", {"name": "sid"})
        if tag and tag.get("value"):
            return tag["value"]
        raise DuoError("Failed to get Duo session ID (sid)")

    def do_prompt(self, sid: str) -> str:
        """Trigger the push and return the Duo transaction id."""
        resp = self.session.post(
            self._url("/frame/prompt"),
            data={
                "sid": sid,
                "device": "phone1",
                "factor": "Duo Push",
                "out_of_date": "false",
            },
            headers=FORM_HEADERS,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        result = resp.json()
        if result.get("stat") != "OK":
            raise DuoError(f"Duo push failed: {result.get('message', result.get('stat'))}")
        return result["response"]["txid"]

    def do_status(self, sid: str, txid: str, cancel: threading.Event) -> str | None:
        """Wait for the push to be answered; return Duo's auth cookie.

        Returns None if *cancel* is set before an answer arrives.
        """
        while not cancel.is_set():
            resp = self.session.post(
                self._url("/frame/status"),
                data={"sid": sid, "txid": txid},
                headers=FORM_HEADERS,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            response = resp.json().get("response", {})
            status_code = response.get("status_code", "")
            logger.debug("Duo status: %s", status_code)

            if status_code == "allow":
                return self._fetch_result(sid, response)
            if status_code == "deny":
                raise DuoError("Duo push was denied")
            if status_code == "timeout":
                raise DuoError("Duo push timed out")

            cancel.wait(self.poll_interval)
        return None

    def _fetch_result(self, sid: str, response: dict) -> str:
        cookie = response.get("cookie")
        if cookie:
            return cookie
        result_url = response.get("result_url")
        if not result_url:
            raise DuoError("No result_url in Duo allow response")
        resp = self.session.post(
            self._url(result_url),
            data={"sid": sid},
            headers=FORM_HEADERS,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        cookie = resp.json().get("response", {}).get("cookie")
        if not cookie:
            raise DuoError("No auth cookie in Duo result")
        return cookie

    def do_callback(self, sig_response: str) -> None:
        """Post the signed Duo response to Okta's completion link."""
        resp = self.session.post(
            self.challenge.callback,
            data={
                "id": "okta",
                "stateToken": self.challenge.state_token,
                "sig_response": sig_response,
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        logger.debug("Duo callback accepted by Okta")
