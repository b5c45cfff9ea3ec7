"""GitHub REST: репозиторий и коммиты за период."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import aiohttp
from pydantic import SecretStr

from config.settings import SourcesSettings

from .http import JsonSource


def parse_repo_ref(value: str | None) -> str | None:
    """'https://github.com/owner/repo(.git)' или 'owner/repo' -> 'owner/repo'."""

    if not value:
        return None
    ref = value.strip()
    for prefix in ("https://github.com/", "http://github.com/", "github.com/"):
        if ref.lower().startswith(prefix):
            ref = ref[len(prefix):]
            break
    ref = ref.strip("/")
    if ref.endswith(".git"):
        ref = ref[:-4]
    parts = [p for p in ref.split("/") if p]
    if len(parts) < 2:
        return None
    return f"{parts[0]}/{parts[1]}"


class GitHubClient(JsonSource):
    name = "github"

    def __init__(
        self,
        settings: SourcesSettings,
        api_key: SecretStr | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        super().__init__(settings, api_key, base_url=str(settings.github_url), session=session)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        key = self._key()
        if key:
            headers["Authorization"] = f"Bearer {key}"
        return headers

    async def repository(self, repo: str) -> dict[str, Any] | None:
        return await self.get_json(f"/repos/{repo}")

    async def commits_since(self, repo: str, since: datetime) -> list[dict[str, Any]]:
        data = await self.get_json(
            f"/repos/{repo}/commits",
            params={"since": since.strftime("%Y-%m-%dT%H:%M:%SZ"), "per_page": "100"},
        )
        return data if isinstance(data, list) else []


__all__ = ["GitHubClient", "parse_repo_ref"]
