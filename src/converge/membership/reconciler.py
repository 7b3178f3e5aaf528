"""
Reconcile an aggregator's peer descriptors against expected member tokens.

Matching policy is containment, not equality: a descriptor matches a token
when the token is a case-sensitive substring of it. Descriptors carry
hostnames, service suffixes and ports that the expected side cannot
predict, so the expected side only commits to the pod-name prefix.

Each descriptor can satisfy at most one token. Tokens are processed in
sorted order and each claims the first still-unclaimed descriptor that
contains it, so the outcome is deterministic for any input order.

Example::

    >>> report = reconcile(
    ...     ["splunk-a-standalone-0.svc:8089", "unrelated:9997"],
    ...     {"splunk-a-standalone-0"},
    ... )
    >>> report.matches
    {'splunk-a-standalone-0': 'splunk-a-standalone-0.svc:8089'}
    >>> report.unexpected
    ['unrelated:9997']
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from converge.core.errors import MembershipMismatch
from converge.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MembershipReport:
    """Outcome of matching descriptors to tokens.

    Attributes:
        matches: Token to the descriptor that satisfied it.
        missing: Tokens with no matching descriptor, sorted.
        unexpected: Descriptors not claimed by any token, in artifact order.
        actual: The full descriptor list as read.
    """

    matches: dict[str, str] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)
    unexpected: list[str] = field(default_factory=list)
    actual: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """Every expected token matched."""
        return not self.missing

    @property
    def exact(self) -> bool:
        """Every token matched and every descriptor was claimed."""
        return not self.missing and not self.unexpected


def match_peers(actual: Sequence[str], expected: Iterable[str]) -> MembershipReport:
    """Match descriptors to tokens without raising."""
    descriptors = list(actual)
    claimed = [False] * len(descriptors)
    matches: dict[str, str] = {}
    missing: list[str] = []

    for token in sorted(set(expected)):
        for index, descriptor in enumerate(descriptors):
            if not claimed[index] and token in descriptor:
                claimed[index] = True
                matches[token] = descriptor
                break
        else:
            missing.append(token)

    unexpected = [d for d, used in zip(descriptors, claimed, strict=True) if not used]
    return MembershipReport(
        matches=matches, missing=missing, unexpected=unexpected, actual=descriptors
    )


def reconcile(
    actual: Sequence[str],
    expected: Iterable[str],
    *,
    strict: bool = False,
) -> MembershipReport:
    """Assert every expected token is present in the descriptor list.

    Args:
        actual: Peer descriptors read from the aggregator.
        expected: Member tokens derived from the deployed resources.
        strict: Also fail on descriptors no token claimed, which enforces
            ``len(actual) == len(expected)``.

    Raises:
        MembershipMismatch: Listing the missing tokens (and unclaimed
            descriptors in strict mode) alongside the full actual list.
    """
    report = match_peers(actual, expected)
    failed = not report.complete or (strict and report.unexpected)

    if failed:
        logger.warning(
            "membership.mismatch",
            missing=report.missing,
            unexpected=report.unexpected,
            actual=report.actual,
            strict=strict,
        )
        raise MembershipMismatch(
            missing=report.missing,
            actual=report.actual,
            unexpected=report.unexpected if strict else None,
        )

    for token, descriptor in report.matches.items():
        logger.debug("membership.matched", token=token, descriptor=descriptor)
    logger.info("membership.reconciled", members=len(report.matches), strict=strict)
    return report


__all__ = ["MembershipReport", "match_peers", "reconcile"]
