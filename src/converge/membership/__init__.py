"""Peer-list parsing and reconciliation."""

from converge.membership.parser import DEFAULT_PEER_KEY, parse_peer_artifact
from converge.membership.reconciler import MembershipReport, match_peers, reconcile

__all__ = [
    "DEFAULT_PEER_KEY",
    "MembershipReport",
    "match_peers",
    "parse_peer_artifact",
    "reconcile",
]
