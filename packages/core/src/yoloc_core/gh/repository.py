from __future__ import annotations

from itertools import islice

from github import Github, GithubException


def get_github(token: str | None) -> Github:
    return Github(token) if token else Github()


def get_repo(github: Github, slug: str):
    return github.get_repo(slug)


def get_readme_text(repo) -> str:
    """Return the decoded README, or "" when the repository has none."""
    try:
        readme = repo.get_readme()
    except GithubException as e:
        if e.status == 404:
            return ""
        raise
    return readme.decoded_content.decode("utf-8", errors="replace")


def get_recent_releases(repo, limit: int = 5) -> list:
    """Return up to ``limit`` releases, newest first."""
    return list(islice(repo.get_releases(), limit))
