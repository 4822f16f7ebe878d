"""
Credential store service.

Persists one Identity per badge code with a per-identity random salt and
the SHA-256 hash of salt + PIN, and verifies PIN attempts against it.
"""

import hashlib
import logging
import re
import secrets

from django.utils import timezone

from apps.core.exceptions import DocumentExistsError
from apps.core.stores import IDENTITIES

from ..domain import Identity
from .exceptions import (
    DuplicateIdentityError,
    IdentityNotFoundError,
    InvalidDisplayNameError,
    InvalidPinError,
)

logger = logging.getLogger(__name__)

SALT_BYTES = 16
PIN_PATTERN = re.compile(r'[0-9]{4}')
DISPLAY_NAME_MAX_LENGTH = 100


def generate_salt() -> bytes:
    """Return SALT_BYTES bytes from the OS CSPRNG."""
    return secrets.token_bytes(SALT_BYTES)


def hash_pin(pin: str, salt: bytes) -> str:
    """Hex SHA-256 of the salt bytes followed by the UTF-8 PIN."""
    return hashlib.sha256(salt + pin.encode('utf-8')).hexdigest()


def validate_pin(pin: str) -> None:
    if not isinstance(pin, str) or not PIN_PATTERN.fullmatch(pin):
        raise InvalidPinError("PIN must be exactly 4 digits")


class CredentialStore:
    """
    Registration and PIN verification for badge identities.

    Args:
        store: Document store holding the 'identities' collection
    """

    def __init__(self, store):
        self.store = store

    async def get(self, user_id: str):
        """Return the Identity for user_id, or None."""
        document = await self.store.get(IDENTITIES, user_id)
        if document is None:
            return None
        return Identity.from_document(document)

    async def register(self, user_id: str, display_name: str, pin: str) -> Identity:
        """
        Create an identity with a fresh salt and hashed PIN.

        The insert is conditional on the badge code, so an existing identity
        (and its hash) is never overwritten.

        Returns:
            The stored Identity

        Raises:
            InvalidPinError: If the PIN is not 4 digits
            InvalidDisplayNameError: If the display name is blank or too long
            DuplicateIdentityError: If user_id is already registered
        """
        validate_pin(pin)
        display_name = (display_name or '').strip()
        if not display_name or len(display_name) > DISPLAY_NAME_MAX_LENGTH:
            raise InvalidDisplayNameError(
                f"Display name must be 1-{DISPLAY_NAME_MAX_LENGTH} characters"
            )

        salt = generate_salt()
        identity = Identity(
            user_id=user_id,
            display_name=display_name,
            salt=salt.hex(),
            pin_hash=hash_pin(pin, salt),
            created_at=timezone.now(),
        )

        try:
            await self.store.insert(IDENTITIES, user_id, identity.to_document())
        except DocumentExistsError:
            raise DuplicateIdentityError(f"Badge {user_id} is already registered")

        logger.info("Registered identity %s (%s)", user_id, display_name)
        return identity

    async def verify(self, user_id: str, pin: str) -> bool:
        """
        Check a PIN attempt.

        Returns:
            True if the PIN matches, False otherwise

        Raises:
            IdentityNotFoundError: If user_id is not registered
        """
        identity = await self.get(user_id)
        if identity is None:
            raise IdentityNotFoundError(f"No identity registered for badge {user_id}")

        attempt = hash_pin(pin or '', bytes.fromhex(identity.salt))
        matched = secrets.compare_digest(attempt, identity.pin_hash)
        if not matched:
            logger.info("PIN mismatch for %s", user_id)
        return matched
