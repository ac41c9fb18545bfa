"""Pydantic models for API request and response schemas.

``NormalizedContentResult`` is the canonical output contract: every field
has a value of the declared type, in text mode and image mode alike.
``CheckResponse`` adds the score, grade and reason computed server-side.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional
from enum import Enum


class CheckMode(str, Enum):
    """Kind of input a check was run on."""
    TEXT = "text"
    IMAGE = "image"


class FindingCategory(str, Enum):
    """Rule family a finding came from."""
    FORBIDDEN = "forbidden"
    COMPANY = "company"
    DYNAMIC = "dynamic"


class Finding(BaseModel):
    """One fired rule instance."""

    category: FindingCategory = Field(..., description="Rule family that fired")
    rule_id: str = Field(..., description="Identifier of the rule", examples=["best_claim"])
    matched: Optional[str] = Field(
        None,
        description="Exact fragment that matched (forbidden phrases only)",
        examples=["tốt nhất"]
    )
    message: str = Field(..., description="Human-readable description of the finding")
    reason: Optional[str] = Field(None, description="Why the rule exists")
    suggestion: Optional[str] = Field(None, description="How to fix the copy")
    severity: int = Field(1, ge=0, description="Severity weight of the rule")


class SpellingIssue(BaseModel):
    """A spelling mistake reported by the model."""

    original: str = ""
    corrected: str = ""
    reason: str = ""


class NormalizedContentResult(BaseModel):
    """Model output mapped onto the agreed shape, plus rule findings."""

    mode: CheckMode = CheckMode.TEXT
    corrected_text: str = ""
    rewrite_text: str = ""
    spelling_issues: List[SpellingIssue] = Field(default_factory=list)
    general_suggestions: List[str] = Field(default_factory=list)
    hashtags: List[str] = Field(default_factory=list)
    design_feedback: List[str] = Field(
        default_factory=list,
        description="Layout and visual notes (image mode only)"
    )
    plain_text: str = Field("", description="Text read off the poster (image mode only)")
    forbidden_findings: List[Finding] = Field(default_factory=list)
    company_findings: List[Finding] = Field(default_factory=list)
    dynamic_findings: List[Finding] = Field(default_factory=list)


class CheckRequest(BaseModel):
    """Text check request."""

    text: str = Field(
        ...,
        description="Marketing copy to check",
        examples=["Lớp cờ vua cho bé từ 4 tuổi, học phí ưu đãi tháng này!"]
    )
    channel: Optional[str] = Field(
        None,
        description="Publishing channel selecting the forbidden-phrase rules",
        examples=["facebook"]
    )
    toggles: Dict[str, bool] = Field(
        default_factory=dict,
        description="Required brand facts to verify (brand, branch, contact, slogan, service)",
        examples=[{"brand": True, "contact": True}]
    )
    requirements: str = Field(
        "",
        description="Extra requirements, one per line",
        examples=["- Có nhắc tới lớp thử miễn phí\n- Có ngày khai giảng"]
    )
    append_footer: bool = Field(False, description="Append the brand footer to the rewrite")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "text": "Trung tâm Cờ Vua – Vẽ khai giảng lớp cờ vua cho bé, cam kết 100% bé giỏi!",
            "channel": "facebook",
            "toggles": {"brand": True, "contact": True},
            "requirements": "lớp thử miễn phí",
            "append_footer": True
        }
    })


class CheckResponse(NormalizedContentResult):
    """Full check result returned to the caller."""

    channel: str = ""
    score: int = Field(..., ge=0, le=100)
    grade: Literal["A", "B", "C"]
    reason: str
    degraded: bool = Field(
        False,
        description="True when the model call or its parsing failed and defaults were used"
    )


class RuleSummary(BaseModel):
    rule_id: str
    label: str
    severity: int


class RulebookSummary(BaseModel):
    """Configured channels, toggles and brand facts."""

    channels: Dict[str, List[RuleSummary]]
    toggles: Dict[str, RuleSummary]
    brand: Dict[str, Any]
