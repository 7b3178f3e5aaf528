"""
Peer-list artifact parser.

The aggregator writes its peers into an INI-style conf file. The only line
that matters looks like::

    configuredPeers = splunk-foo-standalone-0.splunk-foo-standalone-headless:8089,...

The parser finds the first non-empty line containing the key, takes
everything after the first ``=`` and splits it on ``,``. A missing key
line is not an error: the aggregator simply has no peers configured yet.
"""

from __future__ import annotations

DEFAULT_PEER_KEY = "configuredPeers"


def parse_peer_artifact(text: str, key: str = DEFAULT_PEER_KEY) -> list[str]:
    """Extract peer descriptors from the raw artifact text.

    Args:
        text: Full artifact contents, newline delimited.
        key: Substring identifying the membership line.

    Returns:
        Descriptors in artifact order, whitespace-trimmed, with empty
        entries dropped. Empty if no line contains ``key``.
    """
    for line in text.splitlines():
        if not line or key not in line:
            continue
        _, sep, value = line.partition("=")
        if not sep:
            return []
        return [peer.strip() for peer in value.split(",") if peer.strip()]
    return []


__all__ = ["DEFAULT_PEER_KEY", "parse_peer_artifact"]
