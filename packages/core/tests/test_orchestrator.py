"""Tests for check orchestration and aggregation."""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from yoloc_core.checks.base import Checker
from yoloc_core.errors import CheckError, ConfigError, RunCancelled
from yoloc_core.models import CheckResult, Config
from yoloc_core.orchestrator import (
    default_checks,
    normalize_repo,
    persist_key,
    run_cached,
    run_checks,
)
from yoloc_store.disk import DiskPersister


class StaticCheck(Checker):
    def __init__(self, name, results=None, error=None, on_run=None):
        self.name = name
        self._results = results or []
        self._error = error
        self._on_run = on_run
        self.calls = 0

    def run(self, config):
        self.calls += 1
        if self._on_run:
            self._on_run(config)
        if self._error:
            raise self._error
        return self._results


def _r(score, max_score=10, level=0, msg="m"):
    return CheckResult(score=score, max=max_score, message=msg, level=level)


# ---------------------------------------------------------------------------
# Repository normalization
# ---------------------------------------------------------------------------


class TestNormalizeRepo:
    @pytest.mark.parametrize(
        "raw",
        [
            "owner/repo",
            "https://github.com/owner/repo",
            "http://github.com/owner/repo/",
            "github.com/owner/repo.git",
            " owner/repo ",
        ],
    )
    def test_accepts(self, raw):
        config = normalize_repo(Config(repo=raw))
        assert (config.owner, config.name, config.repo) == ("owner", "repo", "owner/repo")

    @pytest.mark.parametrize("raw", ["repo", "", "owner/", "/repo", "https://github.com/owner"])
    def test_rejects(self, raw):
        with pytest.raises(ConfigError):
            normalize_repo(Config(repo=raw))

    def test_malformed_repo_runs_nothing(self):
        check = StaticCheck("a", [_r(1)])
        with pytest.raises(ConfigError):
            run_checks([check], Config(repo="nope"))
        assert check.calls == 0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


class TestRunChecks:
    def test_sums_scores_and_maxima(self):
        checks = [StaticCheck("a", [_r(3), _r(10)]), StaticCheck("b", [_r(0, 5)])]
        summary = run_checks(checks, Config(repo="owner/repo"))
        assert summary.score == 13
        assert summary.max_score == 25
        assert summary.percentage == 52
        assert summary.level == 0
        assert summary.label == "Joan de Arc"

    def test_perfect_score_is_level_four(self):
        summary = run_checks([StaticCheck("a", [_r(10), _r(5, 5)])], Config(repo="owner/repo"))
        assert summary.percentage == 100
        assert summary.level == 4

    def test_failed_check_does_not_abort_or_count(self):
        after = StaticCheck("after", [_r(10)])
        checks = [StaticCheck("broken", error=CheckError("boom")), after]
        rows = []

        summary = run_checks(checks, Config(repo="owner/repo"), on_row=rows.append)

        assert after.calls == 1
        assert summary.max_score == 10
        assert summary.score == 10
        assert rows[0].failed
        assert rows[0].check == "broken"
        assert "boom" in rows[0].error
        assert not rows[1].failed

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("down"),
            OSError("disk"),
            ValueError("bad"),
        ],
    )
    def test_remote_and_parse_errors_are_isolated(self, error):
        summary = run_checks([StaticCheck("x", error=error), StaticCheck("y", [_r(1)])], Config(repo="owner/repo"))
        assert [r.failed for r in summary.rows] == [True, False]

    def test_none_results_ignored(self):
        summary = run_checks([StaticCheck("a", [None, _r(2)])], Config(repo="owner/repo"))
        assert summary.max_score == 10
        assert len(summary.rows) == 1

    def test_results_tagged_with_check_name(self):
        summary = run_checks([StaticCheck("sbom", [_r(2)])], Config(repo="owner/repo"))
        assert summary.results[0].check == "sbom"

    def test_observed_level_ignores_zero_scores(self):
        checks = [StaticCheck("a", [_r(0, level=4), _r(1, level=2), _r(3, level=1)])]
        summary = run_checks(checks, Config(repo="owner/repo"))
        assert summary.observed_level == 2

    def test_no_results_is_zero_percent(self):
        summary = run_checks([StaticCheck("a", error=CheckError("x"))], Config(repo="owner/repo"))
        assert summary.percentage == 0
        assert summary.level == 0

    def test_found_images_shared_between_checks(self):
        seen = []
        first = StaticCheck("first", [_r(0)], on_run=lambda c: c.found_images.append("ghcr.io/owner/repo"))
        second = StaticCheck("second", [_r(0)], on_run=lambda c: seen.extend(c.found_images))
        run_checks([first, second], Config(repo="owner/repo"))
        assert seen == ["ghcr.io/owner/repo"]

    def test_runs_in_order(self):
        order = []
        checks = [StaticCheck(n, [_r(0)], on_run=lambda c, n=n: order.append(n)) for n in "abc"]
        run_checks(checks, Config(repo="owner/repo"))
        assert order == ["a", "b", "c"]

    def test_cancel_stops_further_checks(self):
        later = StaticCheck("later", [_r(1)])
        checks = [StaticCheck("first", [_r(1)], on_run=lambda c: c.cancel.set()), later]
        with pytest.raises(RunCancelled):
            run_checks(checks, Config(repo="owner/repo"))
        assert later.calls == 0

    def test_cancel_inside_check_propagates(self):
        with pytest.raises(RunCancelled):
            run_checks([StaticCheck("a", error=RunCancelled("stop"))], Config(repo="owner/repo"))

    def test_default_checks_order(self):
        assert [c.name for c in default_checks()] == [
            "commits",
            "sbom",
            "private keys",
            "signed image",
            "releaser",
        ]


# ---------------------------------------------------------------------------
# Persistence wrapper
# ---------------------------------------------------------------------------


class TestRunCached:
    def test_hit_replays_without_running(self):
        persister = MagicMock()
        persister.get.return_value = [CheckResult(10, 10, "m", 1, "a")]
        check = StaticCheck("a", [_r(0)])
        rows = []

        summary = run_cached([check], Config(repo="owner/repo"), persister, on_row=rows.append)

        assert check.calls == 0
        assert summary.cached
        assert summary.score == 10
        assert summary.level == 4
        assert rows[0].check == "a"
        persister.set.assert_not_called()

    def test_miss_runs_and_writes_through(self):
        persister = MagicMock()
        persister.get.return_value = None
        checks = [StaticCheck("a", [_r(3)]), StaticCheck("b", [_r(0, 5)])]

        summary = run_cached(checks, Config(repo="owner/repo"), persister)

        assert not summary.cached
        key, results = persister.set.call_args.args
        assert key == "owner/repo"
        assert [(r.check, r.score) for r in results] == [("a", 3), ("b", 0)]

    def test_run_with_failed_check_is_not_persisted(self):
        persister = MagicMock()
        persister.get.return_value = None
        checks = [StaticCheck("a", [_r(3)]), StaticCheck("b", error=CheckError("x"))]

        summary = run_cached(checks, Config(repo="owner/repo"), persister)

        assert summary.rows[1].failed
        persister.set.assert_not_called()

    def test_failed_check_still_shown_on_next_run(self, tmp_path):
        persister = DiskPersister(tmp_path)
        checks = [StaticCheck("ok", [_r(3)]), StaticCheck("broken", error=CheckError("timeout"))]

        first = run_cached(checks, Config(repo="owner/repo"), persister)
        second = run_cached(checks, Config(repo="owner/repo"), persister)

        assert not second.cached
        assert [r.check for r in second.rows] == [r.check for r in first.rows] == ["ok", "broken"]
        assert second.rows[1].failed
        assert checks[0].calls == 2

    def test_successful_run_replays_every_check(self, tmp_path):
        persister = DiskPersister(tmp_path)
        checks = [StaticCheck("ok", [_r(3)]), StaticCheck("other", [_r(5, 5)])]

        first = run_cached(checks, Config(repo="owner/repo"), persister)
        second = run_cached(checks, Config(repo="owner/repo"), persister)

        assert second.cached
        assert [r.check for r in second.rows] == ["ok", "other"]
        assert (second.score, second.max_score) == (first.score, first.max_score)
        assert checks[0].calls == 1

    def test_read_failure_is_a_miss(self):
        persister = MagicMock()
        persister.get.side_effect = RuntimeError("backend down")
        check = StaticCheck("a", [_r(3)])

        summary = run_cached([check], Config(repo="owner/repo"), persister)

        assert check.calls == 1
        assert summary.score == 3

    def test_write_failure_does_not_fail_run(self):
        persister = MagicMock()
        persister.get.return_value = None
        persister.set.side_effect = OSError("read-only")

        summary = run_cached([StaticCheck("a", [_r(3)])], Config(repo="owner/repo"), persister)
        assert summary.score == 3

    def test_key_includes_image(self):
        config = normalize_repo(Config(repo="owner/repo", image="ghcr.io/owner/repo:v1"))
        assert persist_key(config) == "owner/repo@ghcr.io/owner/repo:v1"
