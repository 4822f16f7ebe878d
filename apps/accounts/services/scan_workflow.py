"""
Scan workflow state machine.

One terminal moves through:

    UNAUTHENTICATED --scan_user--> AWAITING_PIN           (badge known)
                    --scan_user--> AWAITING_REGISTRATION  (badge unknown)
    AWAITING_PIN    --enter_pin ok-->  AUTHENTICATED
                    --enter_pin bad--> AWAITING_PIN (failed_attempts + 1)
    AWAITING_REGISTRATION --register--> AUTHENTICATED
    any state       --sign_out--> UNAUTHENTICATED

A new badge scan is allowed from any unauthenticated state and resets the
failed-attempt counter. There is no lockout.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ..domain import Identity, ScanSession
from .exceptions import InvalidWorkflowTransitionError

logger = logging.getLogger(__name__)


class WorkflowStage(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    AWAITING_PIN = "AWAITING_PIN"
    AWAITING_REGISTRATION = "AWAITING_REGISTRATION"
    AUTHENTICATED = "AUTHENTICATED"


@dataclass(frozen=True)
class Unauthenticated:
    stage = WorkflowStage.UNAUTHENTICATED


@dataclass(frozen=True)
class AwaitingPin:
    identity: Identity
    failed_attempts: int = 0
    stage = WorkflowStage.AWAITING_PIN


@dataclass(frozen=True)
class AwaitingRegistration:
    scanned_code: str
    stage = WorkflowStage.AWAITING_REGISTRATION


@dataclass(frozen=True)
class Authenticated:
    session: ScanSession
    stage = WorkflowStage.AUTHENTICATED


WorkflowState = Union[Unauthenticated, AwaitingPin, AwaitingRegistration, Authenticated]


class ScanWorkflow:
    """
    Authentication steps of a scan terminal.

    Args:
        credentials: CredentialStore
        resolver: IdentityResolver
        sessions: SessionHolder receiving the authenticated session
    """

    def __init__(self, credentials, resolver, sessions):
        self.credentials = credentials
        self.resolver = resolver
        self.sessions = sessions
        self._state: WorkflowState = Unauthenticated()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def session(self) -> Optional[ScanSession]:
        if isinstance(self._state, Authenticated):
            return self._state.session
        return None

    def _require(self, *allowed):
        if not isinstance(self._state, allowed):
            names = ', '.join(cls.stage.value for cls in allowed)
            raise InvalidWorkflowTransitionError(
                f"Cannot do that while {self._state.stage.value} (expected {names})"
            )

    async def scan_user(self, scanned_code: str) -> WorkflowState:
        """Resolve a badge scan and move to PIN entry or registration."""
        self._require(Unauthenticated, AwaitingPin, AwaitingRegistration)

        lookup = await self.resolver.resolve(scanned_code)
        if lookup.is_known:
            self._state = AwaitingPin(identity=lookup.identity)
        else:
            self._state = AwaitingRegistration(scanned_code=lookup.scanned_code)
        return self._state

    async def enter_pin(self, pin: str) -> bool:
        """Verify a PIN attempt; authenticate on success."""
        self._require(AwaitingPin)

        identity = self._state.identity
        if await self.credentials.verify(identity.user_id, pin):
            self._state = Authenticated(session=self.sessions.establish(identity))
            return True

        self._state = AwaitingPin(
            identity=identity,
            failed_attempts=self._state.failed_attempts + 1,
        )
        return False

    async def register(self, display_name: str, pin: str) -> Identity:
        """Register the scanned badge and authenticate as the new identity."""
        self._require(AwaitingRegistration)

        identity = await self.credentials.register(
            self._state.scanned_code, display_name, pin
        )
        self._state = Authenticated(session=self.sessions.establish(identity))
        return identity

    def sign_out(self) -> None:
        """Drop the session and return to badge scanning."""
        self.sessions.clear()
        self._state = Unauthenticated()
