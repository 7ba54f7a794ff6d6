"""GitHub App installation token exchange."""

import logging
from datetime import datetime

from .auth import GitHubAppAuth, TokenAuth
from .client import GitHubClient, GitHubClientConfig
from .exceptions import GitHubAuthenticationError

logger = logging.getLogger(__name__)


def _parse_expiry(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
    except ValueError:
        logger.warning(f"Ignoring unparsable token expiry: {value}")
        return None


class GitHubApp:
    """A GitHub client authenticated as a GitHub App.

    The app identity can't touch repositories by itself; it is only used to
    mint installation access tokens, which in turn back the clients that act
    on a repository where the app is installed.
    """

    def __init__(
        self,
        app_id: int,
        private_key: str,
        config: GitHubClientConfig | None = None,
    ) -> None:
        self.app_id = app_id
        self.config = config or GitHubClientConfig()
        self.auth = GitHubAppAuth(app_id, private_key)

    async def installation_token(self, installation_id: int) -> TokenAuth:
        """Exchange the app JWT for an installation access token.

        Raises:
            GitHubError: If GitHub refuses the exchange
        """
        async with GitHubClient(self.auth, self.config) as app_client:
            data = await app_client.post(
                f"/app/installations/{installation_id}/access_tokens"
            )

        if not data or not data.get("token"):
            raise GitHubAuthenticationError(
                f"No access token returned for installation {installation_id}"
            )

        logger.debug(f"Obtained access token for installation {installation_id}")
        return TokenAuth(
            data["token"],
            token_type="token",  # nosec B106
            expires_at=_parse_expiry(data.get("expires_at")),
        )

    async def installation_client(self, installation_id: int) -> GitHubClient:
        """Create a client acting with the permissions of one installation.

        The caller owns the returned client and must close it.
        """
        auth = await self.installation_token(installation_id)
        return GitHubClient(auth, self.config)
