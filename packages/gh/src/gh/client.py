"""GitHub API client."""

import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import AuthFailure, NotFound, RemoteFailure
from .models import User

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


def get_token_from_gh_cli() -> str | None:
    """
    Get GitHub token from gh cli.

    Returns:
        Token string or None if gh cli not available/authenticated
    """
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0 and result.stdout.strip():
            logger.info("Using token from gh cli")
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("gh cli not available: %s", e)
    return None


def get_token(
    token: str | None = None,
    use_gh_cli: bool = False,
    stored: str | None = None,
) -> str | None:
    """
    Get GitHub token from various sources.

    Priority:
    1. Explicitly provided token
    2. Environment variable GH_TOKEN / GITHUB_TOKEN
    3. Previously stored token
    4. gh cli (`gh auth token`) - only if use_gh_cli=True

    Args:
        token: Explicitly provided token
        use_gh_cli: Whether to use gh cli credentials (requires user consent)
        stored: Token loaded from a credential store

    Returns:
        GitHub token or None
    """
    if token and token.strip():
        logger.debug("Using explicitly provided token")
        return token.strip()

    env_token = os.environ.get("GH_TOKEN") or os.environ.get("GITHUB_TOKEN")
    if env_token:
        logger.info("Using token from environment variable")
        return env_token

    if stored:
        logger.info("Using stored token")
        return stored

    if use_gh_cli:
        return get_token_from_gh_cli()

    return None


@dataclass
class Session:
    """Credential and resolved identity of the running client.

    The credential lives only in memory; it is cleared on teardown or when
    GitHub rejects it.
    """

    credential: str | None = None
    identity: str | None = None

    @property
    def authenticated(self) -> bool:
        return bool(self.credential) and self.identity is not None

    def clear(self) -> None:
        self.credential = None
        self.identity = None


def _reason(response: httpx.Response) -> str:
    """Prefer GitHub's JSON `message` over the bare reason phrase."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return response.reason_phrase or "Unknown error"


class GitHubClient:
    """Async GitHub REST API client.

    Holds no credential of its own: every call takes the `Session` whose
    token should be attached. Calls are never retried.
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize GitHub client.

        Args:
            base_url: Custom base URL (defaults to GitHub API)
            timeout: Request timeout in seconds (None waits indefinitely)
            transport: Custom httpx transport (used by tests)
        """
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "pagesync-github-client",
        }
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=timeout,
            transport=transport,
        )
        logger.info("GitHub client ready, base_url=%s", self.base_url)

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(
        self,
        session: Session,
        path: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated request and decode the JSON response.

        Args:
            session: Session whose credential is sent as a bearer token
            path: Endpoint path, e.g. `/user/repos`
            method: HTTP method
            body: JSON request body
            params: Query parameters

        Returns:
            Decoded JSON, or None for empty (204) responses

        Raises:
            AuthFailure: No credential, or 401/403
            NotFound: 404
            RemoteFailure: Any other non-2xx status or a network error
        """
        if not session.credential:
            raise AuthFailure.missing_token()

        headers = {"Authorization": f"Bearer {session.credential}"}
        logger.debug("Request: %s %s params=%s", method, path, params)
        try:
            response = await self._client.request(
                method, path, headers=headers, json=body, params=params
            )
        except httpx.RequestError as e:
            logger.warning("Request failed: %s %s: %s", method, path, e)
            raise RemoteFailure(None, str(e) or type(e).__name__) from e

        logger.debug(
            "Response: %s %s (status=%d)", method, path, response.status_code
        )
        status = response.status_code
        if status in (401, 403):
            raise AuthFailure.rejected(status, _reason(response))
        if status == 404:
            raise NotFound(path)
        if not response.is_success:
            raise RemoteFailure(status, _reason(response))

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Invalid JSON from %s %s: %s", method, path, e)
            raise RemoteFailure(status, f"invalid JSON response from {path}") from e

    async def get_user(self, session: Session) -> User:
        """Fetch the user the session's token belongs to."""
        data = await self.call(session, "/user")
        return User(**data)


def repo_path(owner: str, repo: str, *parts: str) -> str:
    """Build `/repos/{owner}/{repo}[/parts...]`."""
    return "/".join([f"/repos/{owner}/{repo}", *parts])


async def authenticate(client: GitHubClient, session: Session) -> User:
    """
    Resolve the session's identity.

    A rejected credential is cleared from the session before the
    failure propagates.

    Returns:
        The authenticated user
    """
    try:
        user = await client.get_user(session)
    except AuthFailure:
        logger.warning("Authentication failed, clearing credential")
        session.clear()
        raise
    session.identity = user.login
    logger.info("Authenticated as %s", user.login)
    return user
