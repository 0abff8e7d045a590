"""Bearer token authentication."""

from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends, Header
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from api.errors import AuthError
from config import config

BEARER_PREFIX = "Bearer "


class IdentityService(ABC):
    """Resolves bearer tokens to owner ids."""

    @abstractmethod
    async def resolve(self, token: str) -> str | None:
        """Return the owner id for a token, or None if it is not valid."""
        ...


class SignedTokenIdentityService(IdentityService):
    """Issue and verify owner tokens signed with itsdangerous."""

    def __init__(self, secret_key: str | None = None, max_age: int | None = None) -> None:
        """Initialize the signer with a secret key."""
        self._secret_key = secret_key or config.security.secret_key
        self._max_age = max_age or config.security.token_max_age
        self._serializer = URLSafeTimedSerializer(self._secret_key, salt="blackjack-owner")

    def issue(self, owner: str) -> str:
        """Create a signed token for an owner id."""
        return self._serializer.dumps(owner)

    async def resolve(self, token: str) -> str | None:
        """
        Verify a signed token and extract the owner id.

        Args:
            token: The signed token to verify

        Returns:
            The owner id if valid, None otherwise
        """
        try:
            owner = self._serializer.loads(token, max_age=self._max_age)
        except (BadSignature, SignatureExpired):
            return None
        return owner if isinstance(owner, str) and owner else None


# Global identity service instance
_identity_service: IdentityService | None = None


def get_identity_service() -> IdentityService:
    """Get or create the identity service."""
    global _identity_service
    if _identity_service is None:
        _identity_service = SignedTokenIdentityService()
    return _identity_service


async def get_current_owner(
    identity: Annotated[IdentityService, Depends(get_identity_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """
    Resolve the caller from the Authorization header.

    Raises:
        AuthError: If the header is missing or the token does not resolve
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Unauthorized")

    owner = await identity.resolve(authorization[len(BEARER_PREFIX):].strip())
    if owner is None:
        raise AuthError("Invalid token")
    return owner
