from __future__ import annotations

from fastapi import APIRouter

from ..models.schemas import RuleSummary, RulebookSummary
from ..services.rules import get_registry


router = APIRouter(prefix="/api", tags=["rules"])


@router.get("/rules", response_model=RulebookSummary)
async def list_rules():
    """Channels, toggles and brand facts the checker is configured with."""
    registry = get_registry()
    return RulebookSummary(
        channels={
            channel: [RuleSummary(rule_id=r.rule_id, label=r.label, severity=r.severity) for r in rules]
            for channel, rules in registry.forbidden.items()
        },
        toggles={
            toggle: RuleSummary(rule_id=r.rule_id, label=r.label, severity=r.severity)
            for toggle, r in registry.required.items()
        },
        brand=registry.brand,
    )
