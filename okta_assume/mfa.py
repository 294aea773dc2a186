"""Okta MFA challenge for the Duo ("web") factor."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Protocol

from okta_assume.duo import DuoChallenge, DuoClient
from okta_assume.errors import MFAChallengeError, MFATimeoutError, UnsupportedFactorError
from okta_assume.models import AuthnResponse, AuthStatus, Factor
from okta_assume.transport import OktaTransport

logger = logging.getLogger(__name__)

POLL_INTERVAL = 2
MFA_TIMEOUT = 180

_FAILED_FACTOR_RESULTS = frozenset({"REJECTED", "TIMEOUT", "CANCELLED", "ERROR"})


class PushDispatcher(Protocol):
    def push(self, cancel: threading.Event) -> None: ...


def select_factor(factors: list[Factor]) -> Factor:
    """Return the factor to challenge.

    Every factor is inspected and the last supported one is kept, so with
    several Duo factors enrolled the most recently listed one is used.
    """
    selected = None
    for factor in factors:
        if factor.supported:
            selected = factor
        else:
            logger.debug("Skipping unsupported factor %s", factor.factor_type)
    if selected is None:
        factor_types = ", ".join(f.factor_type for f in factors) or "none"
        raise UnsupportedFactorError(factor_types)
    return selected


class _ChallengeState:
    """Authentication state shared by the polling loop and the push worker."""

    def __init__(self, response: AuthnResponse) -> None:
        self._lock = threading.Lock()
        self._response = response
        self._error: BaseException | None = None
        self.wake = threading.Event()

    @property
    def response(self) -> AuthnResponse:
        with self._lock:
            return self._response

    @response.setter
    def response(self, value: AuthnResponse) -> None:
        with self._lock:
            self._response = value

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    def fail(self, exc: BaseException) -> None:
        with self._lock:
            self._error = exc
        self.wake.set()


class MFAChallenger:
    """Drives a Duo push while polling Okta until the factor is verified."""

    def __init__(
        self,
        transport: OktaTransport,
        poll_interval: float = POLL_INTERVAL,
        timeout: float = MFA_TIMEOUT,
        dispatcher_factory: Callable[[DuoChallenge], PushDispatcher] = DuoClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.dispatcher_factory = dispatcher_factory
        self.clock = clock

    def challenge(self, state: AuthnResponse) -> AuthnResponse:
        """Verify the user's Duo factor and return the resulting state.

        The caller checks ``status is AuthStatus.SUCCESS`` before using the
        session token.  Transport errors propagate unchanged.
        """
        factor = select_factor(state.factors)
        logger.debug("Okta factor id: %s", factor.id)

        path = f"api/v1/authn/factors/{factor.id}/verify"
        payload = {"stateToken": state.state_token}

        response = self.transport.request("POST", path, payload)
        if response.status is not AuthStatus.MFA_CHALLENGE:
            return response

        verification = response.verification
        if verification is None:
            raise MFAChallengeError("Okta did not return Duo verification details")

        duo = DuoChallenge(
            host=verification.host,
            signature=verification.signature,
            callback=verification.links.complete.href,
            state_token=response.state_token or state.state_token or "",
        )
        logger.debug("Duo host: %s", duo.host)

        shared = _ChallengeState(response)
        cancel = threading.Event()
        worker = threading.Thread(
            target=self._dispatch,
            args=(duo, shared, cancel),
            name="duo-push",
            daemon=True,
        )
        worker.start()
        try:
            return self._poll(path, payload, shared)
        finally:
            cancel.set()
            worker.join()

    def _dispatch(self, duo: DuoChallenge, shared: _ChallengeState, cancel: threading.Event) -> None:
        logger.info("Sending Duo push, approve it on your device")
        try:
            self.dispatcher_factory(duo).push(cancel)
        except Exception as exc:  # handed to the polling thread
            logger.debug("Duo push failed: %s", exc)
            shared.fail(exc)

    def _poll(self, path: str, payload: dict, shared: _ChallengeState) -> AuthnResponse:
        deadline = self.clock() + self.timeout
        while True:
            error = shared.error
            if error is not None:
                raise MFAChallengeError(f"Duo push failed: {error}") from error

            shared.response = self.transport.request("POST", path, payload)
            response = shared.response
            if response.status is AuthStatus.SUCCESS:
                logger.info("MFA verified")
                return response
            if response.factor_result in _FAILED_FACTOR_RESULTS:
                raise MFAChallengeError(f"MFA verification {response.factor_result.lower()}")
            if response.status is not AuthStatus.MFA_CHALLENGE:
                return response
            if self.clock() >= deadline:
                raise MFATimeoutError(self.timeout)

            shared.wake.wait(self.poll_interval)
