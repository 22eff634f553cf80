"""
Remote snapshot of the league bundle, stored as a JSON file in a GitHub repository.

Read-only for now: fetching goes through the contents API; pushing needs a
write-capable backend that this package does not have, so push_remote only
reports that the data was kept locally.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

import httpx

from leaguebook.models import LeagueData

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PUSH_UNSUPPORTED_MESSAGE = "Data saved locally. Set up GitHub sync for cloud save."


def decode_content(content: str) -> str:
    """Base64 payload from the contents API (may contain line breaks) -> UTF-8 text."""
    return base64.b64decode("".join(content.split())).decode("utf-8")


class RemoteSyncGateway:
    """Fetches the bundle from `{owner}/{repo}/{path}` at `branch`."""

    def __init__(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str = "main",
        token: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.path = path
        self.branch = branch
        self._token = token
        self._client = client
        self._timeout = timeout

    @property
    def contents_url(self) -> str:
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/contents/{self.path}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(self) -> httpx.Response:
        params = {"ref": self.branch}
        if self._client is not None:
            return self._client.get(self.contents_url, params=params, headers=self._headers())
        with httpx.Client(timeout=self._timeout) as client:
            return client.get(self.contents_url, params=params, headers=self._headers())

    def fetch_remote(self) -> LeagueData | None:
        """Return the remote bundle, or None when it cannot be fetched or parsed."""
        try:
            resp = self._get()
            resp.raise_for_status()
            body: Any = resp.json()
            content = body.get("content") if isinstance(body, dict) else None
            if not isinstance(content, str):
                raise ValueError("contents response has no base64 content")
            parsed = json.loads(decode_content(content))
            if not isinstance(parsed, dict):
                raise ValueError("remote bundle is not a JSON object")
            data = LeagueData.from_dict(parsed)
        except httpx.HTTPError as e:
            logger.error("Failed to fetch league data from %s: %s", self.contents_url, e)
            return None
        except (KeyError, TypeError, ValueError, binascii.Error) as e:
            logger.error("Failed to parse league data from %s: %s", self.contents_url, e)
            return None
        logger.info("Fetched league data from %s@%s", self.contents_url, self.branch)
        return data

    def push_remote(self, bundle: LeagueData) -> bool:
        """Not supported yet; the bundle stays in local storage only."""
        logger.info(
            "Remote save not supported; kept %d matches locally only", len(bundle.matches)
        )
        return True
