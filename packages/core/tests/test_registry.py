"""Tests for image reference parsing and tag discovery."""

from __future__ import annotations

import httpx
import pytest

from yoloc_core.registry import DEFAULT_REGISTRY, list_tags, parse_version, select_tag, split_reference


class TestSplitReference:
    @pytest.mark.parametrize(
        "ref,expected",
        [
            ("nginx", (DEFAULT_REGISTRY, "library/nginx", None)),
            ("nginx:1.25", (DEFAULT_REGISTRY, "library/nginx", "1.25")),
            ("owner/app", (DEFAULT_REGISTRY, "owner/app", None)),
            ("docker.io/owner/app:v2", (DEFAULT_REGISTRY, "owner/app", "v2")),
            ("ghcr.io/owner/app", ("ghcr.io", "owner/app", None)),
            ("ghcr.io/owner/app:latest", ("ghcr.io", "owner/app", "latest")),
            ("localhost:5000/app:dev", ("localhost:5000", "app", "dev")),
            ("gcr.io/proj/app@sha256:abc", ("gcr.io", "proj/app", "sha256:abc")),
        ],
    )
    def test_split(self, ref, expected):
        assert split_reference(ref) == expected


class TestSelectTag:
    def test_highest_version_wins(self):
        assert select_tag(["v1.2.0", "latest", "v1.10.0", "v1.9.9"]) == "v1.10.0"

    def test_partial_versions(self):
        assert parse_version("2") == (2, 0, 0)
        assert parse_version("v3.1") == (3, 1, 0)

    def test_falls_back_to_first_raw_tag(self):
        assert select_tag(["main", "latest"]) == "main"

    def test_empty(self):
        assert select_tag([]) is None

    def test_rejects_non_version(self):
        with pytest.raises(ValueError):
            parse_version("1.2.3-rc1")


class TestListTags:
    def test_anonymous(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v2/owner/app/tags/list"
            return httpx.Response(200, json={"name": "owner/app", "tags": ["v1", "v2"]})

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            assert list_tags(client, "ghcr.io/owner/app") == ["v1", "v2"]

    def test_negotiates_bearer_challenge(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.host == "auth.example.com":
                assert request.url.params["scope"] == "repository:owner/app:pull"
                return httpx.Response(200, json={"token": "tok"})
            if request.headers.get("Authorization") == "Bearer tok":
                return httpx.Response(200, json={"tags": ["v1"]})
            return httpx.Response(
                401,
                headers={
                    "www-authenticate": 'Bearer realm="https://auth.example.com/token",'
                    'service="registry",scope="repository:owner/app:pull"'
                },
            )

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            assert list_tags(client, "registry.example.com/owner/app") == ["v1"]
        assert len(seen) == 3

    def test_missing_repository_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"errors": []})

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                list_tags(client, "ghcr.io/owner/gone")

    def test_null_tags(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"tags": None})

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            assert list_tags(client, "ghcr.io/owner/app") == []
