"""Thin GitHub GraphQL transport over httpx.

The client is injected (``httpx.Client``) rather than created here so the
caller owns its lifecycle and tests can hand in a fake.
"""

from __future__ import annotations

import logging
import time

import httpx

from yoloc_core.errors import GraphQLError

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
MAX_RETRIES = 4
RATE_LIMIT_SLEEP = 60
REQUEST_TIMEOUT = 30.0


class RateLimitError(Exception):
    """Raised when GitHub explicitly returns a RATE_LIMITED error."""


class GraphQLClient:
    def __init__(self, token: str | None, client: httpx.Client, url: str = GITHUB_GRAPHQL_URL):
        self._client = client
        self._url = url
        self._headers = {"Content-Type": "application/json"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def query(self, query: str, variables: dict) -> dict:
        """Run one GraphQL query and return its ``data`` object.

        HTTP failures are retried with exponential backoff; an explicit
        RATE_LIMITED error sleeps RATE_LIMIT_SLEEP seconds first. Any other
        GraphQL-level error is raised immediately as GraphQLError.
        """
        last_exc: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                response = self._client.post(
                    self._url,
                    headers=self._headers,
                    json={"query": query, "variables": variables},
                    timeout=REQUEST_TIMEOUT,
                )
                response.raise_for_status()
                payload = response.json()

                errors = payload.get("errors")
                if errors:
                    if any(e.get("type") == "RATE_LIMITED" for e in errors):
                        raise RateLimitError()
                    messages = "; ".join(e.get("message", str(e)) for e in errors)
                    raise GraphQLError(messages)

                data = payload.get("data")
                if data is None:
                    raise GraphQLError("response carried no data")
                return data

            except RateLimitError as exc:
                last_exc = exc
                logger.info("Rate limited - sleeping %ds before retry ...", RATE_LIMIT_SLEEP)
                time.sleep(RATE_LIMIT_SLEEP)

            except httpx.HTTPStatusError as exc:
                last_exc = exc
                # 4xx other than throttling will not get better on retry.
                if exc.response.status_code < 500 and exc.response.status_code not in (403, 429):
                    raise
                wait = 2**attempt
                logger.warning("HTTP error attempt %d/%d: %s - retrying in %ds", attempt + 1, MAX_RETRIES, exc, wait)
                time.sleep(wait)

            except httpx.RequestError as exc:
                last_exc = exc
                wait = 2**attempt
                logger.warning("Request error attempt %d/%d: %s - retrying in %ds", attempt + 1, MAX_RETRIES, exc, wait)
                time.sleep(wait)

        raise GraphQLError(f"exhausted {MAX_RETRIES} retries: {last_exc}")
