"""GitHub authentication handlers."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass

import jwt

from .exceptions import GitHubAuthenticationError

# GitHub rejects app assertions that live longer than ten minutes
JWT_LIFETIME_SECONDS = 600
JWT_CLOCK_DRIFT_SECONDS = 60


@dataclass
class AuthToken:
    """Authentication token with metadata."""

    token: str
    token_type: str = "Bearer"
    expires_at: int | None = None

    @property
    def is_expired(self) -> bool:
        """Check if token is expired."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at

    def to_header(self) -> dict[str, str]:
        """Convert to authorization header."""
        return {"Authorization": f"{self.token_type} {self.token}"}


class AuthProvider(ABC):
    """Abstract base class for authentication providers."""

    @abstractmethod
    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        pass

    @abstractmethod
    async def refresh_token(self) -> AuthToken:
        """Refresh authentication token."""
        pass


class TokenAuth(AuthProvider):
    """Static token authentication, used for installation access tokens."""

    DEFAULT_TOKEN_TYPE = "token"  # nosec B105

    def __init__(
        self,
        token: str,
        token_type: str | None = None,
        expires_at: int | None = None,
    ):
        """Initialize token authentication.

        Args:
            token: Authentication token
            token_type: Type of token (Bearer, token, etc.)
            expires_at: Unix timestamp after which the token is rejected
        """
        if not token:
            raise GitHubAuthenticationError("Token is required")
        if token_type is None:
            token_type = self.DEFAULT_TOKEN_TYPE
        self._token = AuthToken(token=token, token_type=token_type, expires_at=expires_at)

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        if self._token.is_expired:
            raise GitHubAuthenticationError("Access token has expired")
        return self._token

    async def refresh_token(self) -> AuthToken:
        """Static tokens can't be refreshed; return the current one."""
        return self._token


class GitHubAppAuth(AuthProvider):
    """GitHub App authentication provider.

    Produces the short-lived RS256 JWT that authenticates as the app itself.
    The only thing this token is good for here is exchanging it for an
    installation access token.
    """

    def __init__(self, app_id: int | str, private_key: str):
        """Initialize GitHub App authentication.

        Args:
            app_id: GitHub App ID
            private_key: PEM encoded private key for JWT signing
        """
        if not private_key:
            raise GitHubAuthenticationError("GitHub App private key is required")
        self.app_id = str(app_id)
        self.private_key = private_key
        self._current_token: AuthToken | None = None

    def _generate_jwt(self) -> str:
        """Generate JWT for GitHub App authentication."""
        now = int(time.time())
        payload = {
            "iat": now - JWT_CLOCK_DRIFT_SECONDS,
            "exp": now + JWT_LIFETIME_SECONDS,
            "iss": self.app_id,
        }

        try:
            token = jwt.encode(payload, self.private_key, algorithm="RS256")
            return token if isinstance(token, str) else token.decode("utf-8")
        except Exception as e:
            raise GitHubAuthenticationError(f"Failed to generate JWT: {e}") from e

    async def get_token(self) -> AuthToken:
        """Get authentication token."""
        if self._current_token and not self._current_token.is_expired:
            return self._current_token

        return await self.refresh_token()

    async def refresh_token(self) -> AuthToken:
        """Sign a new app JWT."""
        jwt_token = self._generate_jwt()
        self._current_token = AuthToken(
            token=jwt_token,
            token_type="Bearer",  # nosec B106
            # Renew a minute before GitHub would reject it
            expires_at=int(time.time()) + JWT_LIFETIME_SECONDS - 60,
        )
        return self._current_token
