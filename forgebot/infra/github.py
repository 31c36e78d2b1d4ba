"""Minimal async GitHub REST client used by scheduled jobs."""

from datetime import datetime
from typing import Any

import httpx

from forgebot.config.settings import Settings


class GithubError(Exception):
    """Raised when the GitHub API cannot be reached or rejects a request."""

    pass


class GithubClient:
    """HTTP client for the GitHub REST API"""

    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: str | None = None,
        timeout: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "forgebot",
        }
        if token:
            headers["Authorization"] = f"token {token}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GithubClient":
        return cls(
            base_url=settings.github_api_url,
            token=settings.github_api_token or None,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = await self.client.get(path, params=params)
        except httpx.RequestError as e:
            raise GithubError(f"Connection failed: {e}") from e

        if response.status_code >= 400:
            raise GithubError(
                f"GET {path} failed with {response.status_code}: {response.text}"
            )
        return response.json()

    async def get_branch_head(self, repo: str, branch: str) -> str:
        """SHA of the commit at the tip of ``branch`` in ``owner/name`` repo."""
        data = await self._get(f"/repos/{repo}/branches/{branch}")
        return data["commit"]["sha"]

    async def list_commits(
        self,
        repo: str,
        branch: str,
        since: datetime | None = None,
        per_page: int = 100,
    ) -> list[dict[str, Any]]:
        """Commits on ``branch`` newest first, optionally only those after ``since``."""
        params: dict[str, Any] = {"sha": branch, "per_page": per_page}
        if since is not None:
            params["since"] = since.isoformat()
        return await self._get(f"/repos/{repo}/commits", params=params)
