"""Badge scan to identity resolution."""

from dataclasses import dataclass
from typing import Optional

from apps.core.codes import normalize_scanned_code

from ..domain import Identity


@dataclass(frozen=True)
class IdentityLookup:
    """Outcome of a badge scan: known identity, or a code awaiting registration."""

    scanned_code: str
    identity: Optional[Identity] = None

    @property
    def is_known(self) -> bool:
        return self.identity is not None


class IdentityResolver:
    """Exact-match lookup of a normalized badge code."""

    def __init__(self, credentials):
        self.credentials = credentials

    async def resolve(self, scanned_code: str) -> IdentityLookup:
        """
        Raises:
            InvalidScanError: If the payload holds no code
        """
        code = normalize_scanned_code(scanned_code)
        identity = await self.credentials.get(code)
        return IdentityLookup(scanned_code=code, identity=identity)
