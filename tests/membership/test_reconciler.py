"""Tests for converge.membership.reconciler."""

from __future__ import annotations

import pytest

from converge.core.errors import MembershipMismatch
from converge.membership.reconciler import match_peers, reconcile


class TestReconcile:
    """Containment matching of expected tokens against descriptors."""

    def test_single_token_found(self):
        report = reconcile(["pfx-a-standalone-0:8089", "unrelated:9997"], {"pfx-a-standalone-0"})
        assert report.complete
        assert report.matches == {"pfx-a-standalone-0": "pfx-a-standalone-0:8089"}
        assert report.unexpected == ["unrelated:9997"]

    def test_single_token_missing(self):
        with pytest.raises(MembershipMismatch) as exc_info:
            reconcile(["unrelated:9997"], {"pfx-a-standalone-0"})
        err = exc_info.value
        assert err.missing == ["pfx-a-standalone-0"]
        assert err.actual == ["unrelated:9997"]

    def test_empty_actual_against_nonempty_expected(self):
        with pytest.raises(MembershipMismatch) as exc_info:
            reconcile([], {"pfx-a-standalone-0", "pfx-a-standalone-1"})
        assert exc_info.value.missing == ["pfx-a-standalone-0", "pfx-a-standalone-1"]

    def test_empty_both(self):
        report = reconcile([], set())
        assert report.exact

    def test_case_sensitive(self):
        with pytest.raises(MembershipMismatch):
            reconcile(["PFX-A-STANDALONE-0:8089"], {"pfx-a-standalone-0"})

    def test_order_independent(self):
        actual = ["pfx-a-search-head-2:8089", "pfx-a-search-head-0:8089", "pfx-a-search-head-1:8089"]
        expected = {f"pfx-a-search-head-{i}" for i in range(3)}
        report = reconcile(actual, expected, strict=True)
        assert report.exact
        assert report.matches["pfx-a-search-head-0"] == "pfx-a-search-head-0:8089"

    def test_reports_all_missing_sorted(self):
        with pytest.raises(MembershipMismatch) as exc_info:
            reconcile(["pfx-a-standalone-1:8089"], ["pfx-a-standalone-2", "pfx-a-standalone-0", "pfx-a-standalone-1"])
        assert exc_info.value.missing == ["pfx-a-standalone-0", "pfx-a-standalone-2"]


class TestStrict:
    """Strict mode also requires every descriptor to be claimed."""

    def test_extra_descriptor_fails(self):
        with pytest.raises(MembershipMismatch) as exc_info:
            reconcile(["pfx-a-standalone-0:8089", "unrelated:9997"], {"pfx-a-standalone-0"}, strict=True)
        err = exc_info.value
        assert err.missing == []
        assert err.unexpected == ["unrelated:9997"]

    def test_duplicate_descriptor_fails(self):
        actual = ["pfx-a-standalone-0:8089", "pfx-a-standalone-0:8089"]
        with pytest.raises(MembershipMismatch) as exc_info:
            reconcile(actual, {"pfx-a-standalone-0"}, strict=True)
        assert exc_info.value.unexpected == ["pfx-a-standalone-0:8089"]

    def test_exact_match_passes(self):
        actual = ["pfx-a-standalone-0:8089", "pfx-a-standalone-1:8089"]
        report = reconcile(actual, {"pfx-a-standalone-0", "pfx-a-standalone-1"}, strict=True)
        assert report.exact


class TestMatchPeers:
    def test_descriptor_satisfies_one_token(self):
        # both tokens are substrings of the single descriptor
        report = match_peers(["pfx-a-0-pfx-a"], {"pfx-a", "pfx-a-0"})
        assert len(report.matches) == 1
        assert report.matches == {"pfx-a": "pfx-a-0-pfx-a"}
        assert report.missing == ["pfx-a-0"]

    def test_deterministic_for_any_iteration_order(self):
        actual = ["x-token-1-y", "x-token-10-y"]
        first = match_peers(actual, ["token-1", "token-10"])
        second = match_peers(actual, ["token-10", "token-1"])
        assert first == second

    def test_does_not_raise(self):
        report = match_peers([], {"a"})
        assert not report.complete
