"""Bounded reconstruction of a branch's commit history from the GraphQL API.

Each commit is annotated with its provenance: was it signed, was the pull
request it came from approved, and was it reviewed by someone other than
its author. The walk stops early; a compliance heuristic only needs the
recent past, and a busy repository would otherwise cost hundreds of calls.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone

from yoloc_core.cache import ArcCache, HistoryQuery, fingerprint
from yoloc_core.errors import GraphQLError, RunCancelled
from yoloc_core.models import Commit, PullRequest, Review, User

logger = logging.getLogger(__name__)

MAX_COMMITS = 200
MAX_COMMIT_AGE = timedelta(days=365)

# Committer name GitHub uses for web-UI merges it signs itself.
_PLATFORM_COMMITTER_NAME = "GitHub"
PLATFORM_COMMITTER = "github"

HISTORY_QUERY = """
query CommitHistory(
  $owner: String!, $name: String!, $expression: String!,
  $commitsToAnalyze: Int!, $pullRequestsToAnalyze: Int!, $reviewsToAnalyze: Int!,
  $commitsCursor: String
) {
  repository(owner: $owner, name: $name) {
    object(expression: $expression) {
      ... on Commit {
        history(first: $commitsToAnalyze, after: $commitsCursor) {
          pageInfo { endCursor hasNextPage }
          nodes {
            oid
            committedDate
            author { user { login } }
            committer { name user { login } }
            signature { isValid wasSignedByGitHub }
            associatedPullRequests(first: $pullRequestsToAnalyze) {
              nodes {
                number
                headRefOid
                mergedAt
                author { login }
                mergedBy { login }
                repository { name owner { login } }
                reviews(last: $reviewsToAnalyze) {
                  nodes { state author { login } }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""


def _parse_datetime(value: str | None) -> datetime | None:
    """Convert GitHub's ISO datetime string to an aware datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _login(node: dict | None) -> str:
    """Return ``node.login``, tolerating nulls for deleted/ghost accounts."""
    if not node:
        return ""
    return node.get("login") or ""


def _committer(node: dict) -> User:
    committer = node.get("committer") or {}
    signature = node.get("signature") or {}
    login = _login(committer.get("user"))
    if login:
        return User(login=login)
    if (
        committer.get("name") == _PLATFORM_COMMITTER_NAME
        and signature.get("isValid")
        and signature.get("wasSignedByGitHub")
    ):
        return User(login=PLATFORM_COMMITTER)
    return User()


def _build_commit(node: dict, owner: str, name: str) -> Commit:
    """Translate one raw history node into a Commit.

    Only the first associated PR that belongs to ``owner/name`` is
    considered; forks and upstreams that happen to contain the same commit
    are skipped, and scanning stops at the first match.
    """
    signature = node.get("signature") or {}
    commit_author = _login((node.get("author") or {}).get("user"))

    pull_request: PullRequest | None = None
    approved = False
    reviewed = False

    for pr in (node.get("associatedPullRequests") or {}).get("nodes") or []:
        repo = pr.get("repository") or {}
        if _login(repo.get("owner")) != owner or repo.get("name") != name:
            continue

        pr_author = _login(pr.get("author"))
        merged_by = _login(pr.get("mergedBy"))

        # Merging someone else's PR is considered tacit approval.
        if merged_by and merged_by != commit_author:
            approved = True
            reviewed = True

        reviews = []
        for review in (pr.get("reviews") or {}).get("nodes") or []:
            reviewer = _login(review.get("author"))
            state = review.get("state") or ""
            reviews.append(Review(author=User(login=reviewer), state=state))
            if reviewer != pr_author:
                reviewed = True
            if state == "APPROVED":
                approved = True

        pull_request = PullRequest(
            number=int(pr.get("number") or 0),
            head_sha=pr.get("headRefOid") or "",
            merged_at=_parse_datetime(pr.get("mergedAt")),
            author=User(login=pr_author),
            merged_by=User(login=merged_by),
            reviews=tuple(reviews),
        )
        break

    return Commit(
        sha=node.get("oid") or "",
        committed_date=_parse_datetime(node.get("committedDate")),
        committer=_committer(node),
        signed=bool(signature.get("isValid")),
        approved=approved,
        reviewed=reviewed,
        pull_request=pull_request,
    )


def _history(data: dict) -> dict:
    repository = data.get("repository")
    if repository is None:
        raise GraphQLError("repository not found")
    obj = repository.get("object")
    if not obj:
        # Unknown branch: treated as an empty history so the caller can fall back.
        return {"nodes": [], "pageInfo": {"hasNextPage": False, "endCursor": None}}
    return obj["history"]


def fetch_commits(
    client,
    owner: str,
    name: str,
    branch: str,
    cache: ArcCache | None = None,
    cancel: threading.Event | None = None,
    now: datetime | None = None,
) -> list[Commit]:
    """Return up to MAX_COMMITS recent commits on ``branch``, newest first.

    ``client`` is anything with ``query(query, variables) -> data`` (see
    GraphQLClient). The walk ends at the first of: MAX_COMMITS collected,
    a commit older than MAX_COMMIT_AGE seen (kept as the last entry), or
    no further pages. The result is cached under the query fingerprint only
    once the walk completes.
    """
    params = HistoryQuery(owner=owner, name=name, branch=branch)
    key = fingerprint(params)

    if cache is not None:
        cached, found = cache.get(key)
        if found:
            logger.debug("Commit history cache hit for %s/%s@%s", owner, name, branch)
            return list(cached)

    variables = {
        "owner": owner,
        "name": name,
        "expression": branch,
        "commitsToAnalyze": params.commits_per_page,
        "pullRequestsToAnalyze": params.pull_requests_per_commit,
        "reviewsToAnalyze": params.reviews_per_pull_request,
        "commitsCursor": None,
    }

    age_cutoff = (now or datetime.now(timezone.utc)) - MAX_COMMIT_AGE
    commits: list[Commit] = []
    pages = 0
    done = False

    while not done:
        if cancel is not None and cancel.is_set():
            raise RunCancelled(f"commit history walk for {owner}/{name} cancelled after {pages} page(s)")

        history = _history(client.query(HISTORY_QUERY, variables))
        pages += 1

        for node in history.get("nodes") or []:
            commit = _build_commit(node, owner, name)
            commits.append(commit)
            if commit.committed_date is not None and commit.committed_date < age_cutoff:
                done = True
                break
            if len(commits) >= MAX_COMMITS:
                done = True
                break

        page_info = history.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            done = True
        variables["commitsCursor"] = page_info.get("endCursor")

    logger.debug("Fetched %d commit(s) for %s/%s@%s in %d page(s)", len(commits), owner, name, branch, pages)

    if cache is not None:
        cache.add(key, tuple(commits))
    return commits
