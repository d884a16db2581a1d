"""Sponsor Rules — sponsorship pipeline transitions and pipeline summary.

Invariants:
    - prospect -> contacted -> negotiating -> committed -> paid
    - Any non-terminal stage may move to declined; paid and declined are terminal
    - received_amount never exceeds committed_amount
"""

from decimal import Decimal

from eventdesk.core.domain_types import SponsorStatus, SponsorTier


SPONSOR_TRANSITIONS: dict[SponsorStatus, frozenset[SponsorStatus]] = {
    SponsorStatus.PROSPECT: frozenset({SponsorStatus.CONTACTED, SponsorStatus.DECLINED}),
    SponsorStatus.CONTACTED: frozenset({SponsorStatus.NEGOTIATING, SponsorStatus.DECLINED}),
    SponsorStatus.NEGOTIATING: frozenset({SponsorStatus.COMMITTED, SponsorStatus.DECLINED}),
    SponsorStatus.COMMITTED: frozenset({SponsorStatus.PAID, SponsorStatus.DECLINED}),
    SponsorStatus.PAID: frozenset(),
    SponsorStatus.DECLINED: frozenset(),
}


def check_sponsor_transition(
    current: SponsorStatus, target: SponsorStatus,
) -> dict | None:
    if current == target:
        return None
    if target not in SPONSOR_TRANSITIONS[current]:
        return {
            "error_code": "INVALID_SPONSOR_TRANSITION",
            "message": f"Cannot move sponsor from {current.value} to {target.value}",
        }
    return None


def validate_amounts(committed: Decimal, received: Decimal) -> dict | None:
    if committed < 0 or received < 0:
        return {
            "error_code": "NEGATIVE_AMOUNT",
            "field": "committed_amount" if committed < 0 else "received_amount",
            "message": "Amounts cannot be negative",
        }
    if received > committed:
        return {
            "error_code": "RECEIVED_EXCEEDS_COMMITTED",
            "field": "received_amount",
            "message": "Received amount cannot exceed committed amount",
        }
    return None


def _bucket() -> dict:
    return {"count": 0, "committed": Decimal("0"), "received": Decimal("0")}


def summarize_pipeline(
    sponsors: list[tuple[SponsorStatus, SponsorTier, Decimal, Decimal]],
) -> dict:
    """sponsors = [(status, tier, committed, received)]."""
    by_status = {s.value: _bucket() for s in SponsorStatus}
    by_tier = {t.value: _bucket() for t in SponsorTier}
    for status, tier, committed, received in sponsors:
        for bucket in (by_status[status.value], by_tier[tier.value]):
            bucket["count"] += 1
            bucket["committed"] += committed
            bucket["received"] += received
    return {
        "total_sponsors": len(sponsors),
        "total_committed": sum((c for _, _, c, _ in sponsors), Decimal("0")),
        "total_received": sum((r for _, _, _, r in sponsors), Decimal("0")),
        "by_status": by_status,
        "by_tier": by_tier,
    }
