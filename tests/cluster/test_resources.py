"""Tests for converge.cluster.resources."""

from __future__ import annotations

import pytest

from converge.cluster.resources import Resource, ResourceKind, expected_membership, member_token


class TestResourceKind:
    def test_standalone(self):
        kind = ResourceKind.STANDALONE
        assert kind.role == "standalone"
        assert kind.cli_name == "standalone"
        assert kind.default_replicas == 1

    def test_search_head_cluster(self):
        kind = ResourceKind.SEARCH_HEAD_CLUSTER
        assert kind.role == "search-head"
        assert kind.cli_name == "shc"
        assert kind.default_replicas == 3

    @pytest.mark.parametrize(
        "name, kind",
        [
            ("standalone", ResourceKind.STANDALONE),
            ("Standalone", ResourceKind.STANDALONE),
            ("shc", ResourceKind.SEARCH_HEAD_CLUSTER),
            ("SearchHeadCluster", ResourceKind.SEARCH_HEAD_CLUSTER),
            ("search-head", ResourceKind.SEARCH_HEAD_CLUSTER),
        ],
    )
    def test_from_cli(self, name, kind):
        assert ResourceKind.from_cli(name) is kind

    def test_from_cli_unknown(self):
        with pytest.raises(ValueError):
            ResourceKind.from_cli("indexer")


class TestResource:
    def test_default_replicas_from_kind(self):
        assert Resource("foo", "ns", ResourceKind.STANDALONE).replicas == 1
        assert Resource("foo", "ns", ResourceKind.SEARCH_HEAD_CLUSTER).replicas == 3

    def test_expected_tokens(self):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE, replicas=2)
        assert resource.expected_tokens("splunk") == [
            "splunk-foo-standalone-0",
            "splunk-foo-standalone-1",
        ]

    def test_expected_tokens_search_heads(self):
        resource = Resource("bar", "ns", ResourceKind.SEARCH_HEAD_CLUSTER)
        assert resource.expected_tokens("pfx") == [
            "pfx-bar-search-head-0",
            "pfx-bar-search-head-1",
            "pfx-bar-search-head-2",
        ]

    def test_with_replicas_rebuilds_tokens(self):
        resource = Resource("foo", "ns", ResourceKind.STANDALONE)
        scaled = resource.with_replicas(2)
        assert resource.replicas == 1
        assert scaled.replicas == 2
        assert len(scaled.expected_tokens("splunk")) == 2

    def test_with_replicas_rejects_zero(self):
        with pytest.raises(ValueError):
            Resource("foo", "ns", ResourceKind.STANDALONE).with_replicas(0)

    def test_ref(self):
        assert Resource("foo", "ns", ResourceKind.SEARCH_HEAD_CLUSTER).ref == "shc/foo"


class TestExpectedMembership:
    def test_union_over_resources(self):
        shc = Resource("abc", "ns", ResourceKind.SEARCH_HEAD_CLUSTER)
        standalone = Resource("abc", "ns", ResourceKind.STANDALONE)
        assert expected_membership([shc, standalone], "splunk") == {
            "splunk-abc-search-head-0",
            "splunk-abc-search-head-1",
            "splunk-abc-search-head-2",
            "splunk-abc-standalone-0",
        }

    def test_member_token(self):
        assert member_token("pfx", "a", "standalone", 0) == "pfx-a-standalone-0"
