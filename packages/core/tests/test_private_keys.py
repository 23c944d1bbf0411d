"""Tests for the private key check and image discovery."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from yoloc_core.checks.private_keys import PrivateKeysCheck, classify, image_variations
from yoloc_core.errors import CheckError
from yoloc_core.models import Config
from yoloc_core.scan import Match


def test_image_variations():
    assert image_variations("ghcr.io/acme/widget", "widget") == [
        "ghcr.io/acme/widget",
        "ghcr.io/acme/widget/widget",
        "ghcr.io/acme/widget/widget-server",
        "ghcr.io/acme/widget/widget-cli",
        "ghcr.io/acme/widget/widget-client",
    ]


def test_image_variations_skip_existing_suffixes():
    out = image_variations("ghcr.io/widget/widget-cli", "widget")
    assert "ghcr.io/widget/widget-cli/widget" not in out
    assert "ghcr.io/widget/widget-cli/widget-cli" not in out
    assert out[0] == "ghcr.io/widget/widget-cli"


def test_classify():
    matches = [
        Match("key", "deploy/id_rsa", "Private SSH key"),
        Match("key", "test/fixtures/fake.pem", "Potential cryptographic private key"),
        Match("key", "deploy/id_rsa", "Private key block"),
        Match("image", "Dockerfile", "_IMAGE_REGISTRY_REFERENCE", "ghcr.io/acme/widget"),
        Match("image", "k8s.yaml", "_IMAGE_REGISTRY_REFERENCE", "docker.io/library/redis"),
        Match("image", "other.yaml", "_IMAGE_REGISTRY_REFERENCE", "ghcr.io/acme/widget"),
    ]
    keys, images = classify(matches, "acme", "widget")
    assert keys == ["deploy/id_rsa"]
    assert images == ["ghcr.io/acme/widget"]


class TestPrivateKeysCheck:
    @pytest.fixture
    def config(self, tmp_path):
        return Config(repo="acme/widget", owner="acme", name="widget", scanner=MagicMock(), clone_root=str(tmp_path))

    def test_keys_found_scores_full(self, config, mocker):
        clone = mocker.patch("yoloc_core.checks.private_keys.clone_repo")
        config.scanner.scan.return_value = [Match("key", "deploy/id_rsa", "Private SSH key")]

        results = PrivateKeysCheck().run(config)

        assert results[0].score == results[0].max == 10
        assert "deploy/id_rsa" in results[0].message
        url, dest, branch, fallback = clone.call_args.args
        assert url == "https://github.com/acme/widget.git"
        assert dest.parts[-2:] == ("acme", "widget")
        assert (branch, fallback) == ("main", "master")

    def test_no_keys(self, config, mocker):
        mocker.patch("yoloc_core.checks.private_keys.clone_repo")
        config.scanner.scan.return_value = []

        results = PrivateKeysCheck().run(config)

        assert results[0].score == 0
        assert "Sharing is caring" in results[0].message
        assert config.found_images == []

    def test_publishes_discovered_images(self, config, mocker):
        mocker.patch("yoloc_core.checks.private_keys.clone_repo")
        config.scanner.scan.return_value = [
            Match("image", "Dockerfile", "_IMAGE_REGISTRY_REFERENCE", "ghcr.io/acme/widget"),
        ]

        PrivateKeysCheck().run(config)

        assert config.found_images[0] == "ghcr.io/acme/widget"
        assert "ghcr.io/acme/widget/widget-server" in config.found_images

    def test_clone_failure_propagates(self, config, mocker):
        mocker.patch("yoloc_core.checks.private_keys.clone_repo", side_effect=CheckError("clone failed"))
        with pytest.raises(CheckError):
            PrivateKeysCheck().run(config)

    def test_requires_scanner(self):
        with pytest.raises(CheckError):
            PrivateKeysCheck().run(Config(repo="acme/widget", owner="acme", name="widget"))
