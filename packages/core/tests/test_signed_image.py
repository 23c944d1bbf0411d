"""Tests for the signed image check."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from yoloc_core.checks.signed_image import SignedImageCheck, resolve_tag
from yoloc_core.errors import CheckError, NoSignaturesError, VerificationError
from yoloc_core.models import Config


def _config(**kwargs):
    return Config(repo="acme/widget", owner="acme", name="widget", verifier=MagicMock(), **kwargs)


class TestExplicitImage:
    def test_zero_signatures_is_full_marks(self):
        config = _config(image="ghcr.io/acme/widget:v1")
        config.verifier.verify.side_effect = NoSignaturesError("none")

        [result] = SignedImageCheck().run(config)

        assert result.score == result.max == 10
        assert result.level == 3
        assert result.message == "Found no verified signatures for ghcr.io/acme/widget:v1"

    def test_signed_image_scores_zero(self):
        config = _config(image="ghcr.io/acme/widget:v1")
        config.verifier.verify.return_value = [{}, {}]

        [result] = SignedImageCheck().run(config)

        assert result.score == 0
        assert "Found 2 verified signatures" in result.message

    def test_verification_error_fails_check(self):
        config = _config(image="ghcr.io/acme/widget:v1")
        config.verifier.verify.side_effect = VerificationError("MANIFEST_UNKNOWN")
        with pytest.raises(CheckError, match="MANIFEST_UNKNOWN"):
            SignedImageCheck().run(config)

    def test_explicit_image_ignores_discovered(self):
        config = _config(image="ghcr.io/acme/widget:v1", found_images=["ghcr.io/acme/other"])
        config.verifier.verify.return_value = []
        SignedImageCheck().run(config)
        config.verifier.verify.assert_called_once_with("ghcr.io/acme/widget:v1")


class TestDiscoveredImages:
    def test_nothing_to_verify(self):
        with pytest.raises(CheckError, match="none discovered"):
            SignedImageCheck().run(_config())

    def test_skips_images_that_fail_verification(self):
        config = _config(found_images=["ghcr.io/acme/widget:v1", "ghcr.io/acme/widget/widget-cli:v1"])
        config.verifier.verify.side_effect = [VerificationError("not found"), NoSignaturesError("none")]

        results = SignedImageCheck().run(config)

        assert len(results) == 1
        assert "widget-cli" in results[0].message
        assert results[0].score == 10

    def test_all_fail(self):
        config = _config(found_images=["ghcr.io/acme/a:v1", "ghcr.io/acme/b:v1"])
        config.verifier.verify.side_effect = VerificationError("not found")
        with pytest.raises(CheckError, match="2 discovered"):
            SignedImageCheck().run(config)

    def test_tagless_images_are_pinned(self, mocker):
        mocker.patch("yoloc_core.checks.signed_image.list_tags", return_value=["v1.0.0", "v1.2.0"])
        config = _config(found_images=["ghcr.io/acme/widget"], http=MagicMock())
        config.verifier.verify.return_value = [{}]

        SignedImageCheck().run(config)

        config.verifier.verify.assert_called_once_with("ghcr.io/acme/widget:v1.2.0")

    def test_requires_verifier(self):
        with pytest.raises(CheckError):
            SignedImageCheck().run(Config(repo="acme/widget", image="x"))


class TestResolveTag:
    def test_tagged_reference_unchanged(self):
        assert resolve_tag(MagicMock(), "ghcr.io/acme/widget:v1") == "ghcr.io/acme/widget:v1"

    def test_no_client(self):
        assert resolve_tag(None, "ghcr.io/acme/widget") == "ghcr.io/acme/widget"

    def test_registry_error_leaves_reference(self, mocker):
        mocker.patch("yoloc_core.checks.signed_image.list_tags", side_effect=httpx.ConnectError("down"))
        assert resolve_tag(MagicMock(), "ghcr.io/acme/widget") == "ghcr.io/acme/widget"

    def test_no_tags(self, mocker):
        mocker.patch("yoloc_core.checks.signed_image.list_tags", return_value=[])
        assert resolve_tag(MagicMock(), "ghcr.io/acme/widget") == "ghcr.io/acme/widget"
