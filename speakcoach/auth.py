"""
Identity collaborator.

The login step hands us a Google ID token. Only its claims are read (the
token is treated as an opaque credential, not verified) to build the
profile shown in the app; scoring never depends on who is logged in.
"""

from typing import Optional

from jose import JWTError, jwt

from .database import DatabaseClient
from .errors import InvalidCredentialError
from .logger import logger
from .models import UserIdentity


def identity_from_credential(token: str) -> UserIdentity:
    """Read `sub`, `name`, `email` and `picture` from an ID token."""
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise InvalidCredentialError(f"Credential is not a readable token: {e}") from e

    if not claims.get("sub"):
        raise InvalidCredentialError("Credential has no subject")
    return UserIdentity(
        id=str(claims["sub"]),
        name=str(claims.get("name") or ""),
        email=str(claims.get("email") or ""),
        picture=claims.get("picture"),
    )


class AuthManager:
    def __init__(self, store: DatabaseClient):
        self.store = store
        self._user: Optional[UserIdentity] = store.load_user()

    @property
    def current_user(self) -> Optional[UserIdentity]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def login(self, credential: str) -> UserIdentity:
        user = identity_from_credential(credential)
        self._user = user
        self.store.save_user(user)
        logger.success(f"Welcome, {user.name or user.email}!")
        return user

    def logout(self) -> None:
        self._user = None
        self.store.save_user(None)
        logger.info("You have been logged out")
