"""HTTP fetchers for candidate sources."""

import logging
import os
from urllib.parse import urlparse

import httpx

from orchestrator.errors import ExternalOperationError

from .base import SourceFetcher

logger = logging.getLogger(__name__)

_TEXT_TYPES = ("text/", "application/json", "application/xhtml+xml")


class HttpSourceFetcher(SourceFetcher):
    """Fetches resumes, LinkedIn pages and GitHub READMEs over HTTP.

    Authentication via environment variables:
        GITHUB_TOKEN: Personal access token (or GH_TOKEN), optional
    """

    def __init__(
        self,
        timeout: float = 30.0,
        github_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.github_token = github_token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN", "")
        self.github_api = "https://api.github.com"

    async def _get(self, url: str, headers: dict[str, str] | None = None) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True, transport=self.transport
            ) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            raise ExternalOperationError(f"GET {url} returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ExternalOperationError(f"GET {url} failed: {e}") from e

    async def fetch_resume(self, url: str) -> str:
        """Fetch an uploaded resume.

        Only text documents are supported; binary formats need a parsing
        service in front of this fetcher.
        """
        response = await self._get(url)
        content_type = response.headers.get("content-type", "")
        if content_type and not content_type.startswith(_TEXT_TYPES):
            raise ExternalOperationError(f"Unsupported resume content type: {content_type}")
        return response.text

    async def fetch_linkedin(self, url: str) -> str:
        response = await self._get(url, headers={"Accept": "text/html"})
        return response.text

    async def fetch_github_readme(self, url: str) -> str:
        """Fetch the README for a GitHub profile or repository URL.

        A profile URL (github.com/user) resolves to the user's profile
        README repository (user/user).
        """
        parts = [p for p in urlparse(url).path.split("/") if p]
        if not parts:
            raise ExternalOperationError(f"Not a GitHub profile or repository URL: {url}")
        owner = parts[0]
        repo = parts[1] if len(parts) > 1 else owner

        headers = {
            "Accept": "application/vnd.github.raw+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"

        response = await self._get(f"{self.github_api}/repos/{owner}/{repo}/readme", headers=headers)
        logger.debug("Fetched README for %s/%s (%d chars)", owner, repo, len(response.text))
        return response.text
