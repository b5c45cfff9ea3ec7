"""Категория development: активность репозитория GitHub."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from loguru import logger

from tokenhealth.services.sources import Sources, parse_repo_ref
from tokenhealth.utils.formatters import format_flag, format_number, format_text

from .base import MetricField, TokenContext, parse_datetime, to_int, unwrap

ACTIVITY_WINDOW = timedelta(days=30)


@dataclass(slots=True)
class DevelopmentSnapshot:
    repository: str | None = None
    activity_level: str | None = None
    commits_30d: int | None = None
    stars: int | None = None
    forks: int | None = None
    open_issues: int | None = None
    last_commit: str | None = None
    roadmap_progress: int | None = None
    is_open_source: bool | None = None


def _percent(value: int) -> str:
    return f"{value}%"


def _date(value: str) -> str:
    return value[:10]


FIELDS: tuple[MetricField, ...] = (
    MetricField("githubRepo", "repository", format_text),
    MetricField("githubActivity", "activity_level", format_text),
    MetricField("githubCommits", "commits_30d", format_number, "githubCommitsValue"),
    MetricField("githubStars", "stars", format_number, "githubStarsValue"),
    MetricField("githubForks", "forks", format_number, "githubForksValue"),
    MetricField("openIssues", "open_issues", format_number, "openIssuesValue"),
    MetricField("lastCommitDate", "last_commit", _date),
    MetricField("roadmapProgress", "roadmap_progress", _percent, "roadmapProgressValue"),
    MetricField("githubPublic", "is_open_source", format_flag, "githubPublicValue", False),
)


def activity_level(commits_30d: int | None) -> str | None:
    if commits_30d is None:
        return None
    if commits_30d > 50:
        return "Very Active"
    if commits_30d > 20:
        return "Active"
    if commits_30d > 5:
        return "Moderate"
    if commits_30d > 0:
        return "Low"
    return "Inactive"


def roadmap_progress(open_issues: int | None, created_at: datetime | None, now: datetime) -> int | None:
    """Оценка прогресса по плотности открытых issues (штук в день с момента создания)."""

    if open_issues is None:
        return None
    if open_issues == 0:
        return 100
    days = max((now - created_at).days, 1) if created_at is not None else 1
    density = open_issues / days
    if density < 0.01:
        return 90
    if density < 0.05:
        return 75
    if density < 0.1:
        return 60
    if density < 0.5:
        return 40
    return 25


def repo_from_details(details: dict[str, Any]) -> str | None:
    repos = ((details.get("links") or {}).get("repos_url") or {}).get("github") or []
    for url in repos:
        ref = parse_repo_ref(url)
        if ref:
            return ref
    return None


def build_development(
    repo_ref: str | None,
    repo: dict[str, Any] | None,
    commits: list[dict[str, Any]] | None,
    developer_data: dict[str, Any],
    now: datetime,
) -> DevelopmentSnapshot:
    snapshot = DevelopmentSnapshot(repository=repo_ref)
    if repo:
        snapshot.stars = to_int(repo.get("stargazers_count"))
        snapshot.forks = to_int(repo.get("forks_count"))
        snapshot.open_issues = to_int(repo.get("open_issues_count"))
        snapshot.is_open_source = not bool(repo.get("private"))
        snapshot.last_commit = repo.get("pushed_at")
        snapshot.roadmap_progress = roadmap_progress(
            snapshot.open_issues, parse_datetime(repo.get("created_at")), now
        )
    elif developer_data:
        # Резерв: developer_data CoinGecko.
        snapshot.stars = to_int(developer_data.get("stars"))
        snapshot.forks = to_int(developer_data.get("forks"))
        total, closed = to_int(developer_data.get("total_issues")), to_int(developer_data.get("closed_issues"))
        if total is not None and closed is not None:
            snapshot.open_issues = max(total - closed, 0)
            snapshot.roadmap_progress = roadmap_progress(snapshot.open_issues, None, now)
    if commits is not None:
        snapshot.commits_30d = len(commits)
        if commits:
            date = ((commits[0].get("commit") or {}).get("committer") or {}).get("date")
            snapshot.last_commit = date or snapshot.last_commit
    elif developer_data.get("commit_count_4_weeks") is not None:
        snapshot.commits_30d = to_int(developer_data.get("commit_count_4_weeks"))
    snapshot.activity_level = activity_level(snapshot.commits_30d)
    return snapshot


async def collect_development(ctx: TokenContext, sources: Sources) -> DevelopmentSnapshot:
    repo_ref = parse_repo_ref(ctx.github_repo) or repo_from_details(ctx.details)
    developer_data = ctx.details.get("developer_data") or {}
    if not repo_ref:
        logger.debug("development: репозиторий не найден для {key}", key=ctx.key)
        return build_development(None, None, None, developer_data, ctx.now)

    repo, commits = await asyncio.gather(
        sources.github.repository(repo_ref),
        sources.github.commits_since(repo_ref, ctx.now - ACTIVITY_WINDOW),
        return_exceptions=True,
    )
    repo = unwrap(repo, None, source="github", key=ctx.key)
    commits = unwrap(commits, None, source="github", key=ctx.key)
    return build_development(
        repo_ref,
        repo,
        commits,
        developer_data,
        ctx.now,
    )


__all__ = [
    "DevelopmentSnapshot",
    "FIELDS",
    "activity_level",
    "build_development",
    "collect_development",
    "roadmap_progress",
]
