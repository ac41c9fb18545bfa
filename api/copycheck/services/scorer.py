from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict

# (points per item, cap) per category, applied in this order
SPELLING_PENALTY = (5, 30)
FORBIDDEN_PENALTY = (15, 45)
COMPANY_PENALTY = (8, 24)
DYNAMIC_PENALTY = (5, 25)

GRADE_A_MIN = 85
GRADE_B_MIN = 65

REASON_SEPARATOR = " | "


@dataclass(frozen=True)
class ScoreResult:
    score: int
    grade: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _deduction(count: int, penalty: tuple[int, int]) -> int:
    per_item, cap = penalty
    return min(count * per_item, cap)


def grade_for(value: int) -> str:
    if value >= GRADE_A_MIN:
        return "A"
    if value >= GRADE_B_MIN:
        return "B"
    return "C"


def score(spelling_count: int, forbidden_count: int, company_count: int, dynamic_count: int) -> ScoreResult:
    """Deterministic quality score from the four finding counts.

    Each category is capped on its own before the deductions are summed, so no
    single category can sink the score by itself. Model-reported scores are
    never consulted.
    """
    value = 100
    value -= _deduction(spelling_count, SPELLING_PENALTY)
    value -= _deduction(forbidden_count, FORBIDDEN_PENALTY)
    value -= _deduction(company_count, COMPANY_PENALTY)
    value -= _deduction(dynamic_count, DYNAMIC_PENALTY)
    value = max(0, min(100, value))

    reason = REASON_SEPARATOR.join([
        f"Lỗi chính tả: {spelling_count}",
        f"Từ cấm: {forbidden_count}",
        f"Thiếu thông tin thương hiệu: {company_count}",
        f"Yêu cầu chưa đạt: {dynamic_count}",
    ])
    return ScoreResult(score=value, grade=grade_for(value), reason=reason)
