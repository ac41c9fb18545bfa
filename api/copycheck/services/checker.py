"""Per-request check pipeline.

prompt -> model -> extract -> normalize -> rules on corrected text -> score
-> footer. Model and parsing failures are absorbed here, in one place: both
turn into the empty record, which the normalizer maps onto the caller's own
text. Only bad caller input is raised.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..core.config import settings
from ..core.structured_logging import LoggerFactory, log_business_event, log_external_call
from ..models.exceptions import InvalidInput, MalformedResponse, UpstreamGenerationFailure
from ..models.schemas import CheckMode, CheckRequest, CheckResponse, NormalizedContentResult
from . import openrouter
from .extractor import extract
from .footer import compose_footer
from .normalizer import normalize
from .prompts import POSTER_CHECK_SYSTEM, TEXT_CHECK_SYSTEM, build_poster_prompt, build_text_prompt
from .rules import RuleRegistry, get_registry, parse_requirement_lines
from .scorer import score

logger = LoggerFactory.get_logger(__name__)

ALLOWED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp")
RAW_LOG_LIMIT = 2000


@dataclass
class ModelOutcome:
    record: Dict[str, Any] = field(default_factory=dict)
    degraded: bool = False


async def _run_model(prompt: str, system: str, image: Optional[openrouter.ImageInput] = None) -> ModelOutcome:
    start = time.time()
    try:
        raw = await openrouter.generate(prompt, image=image, system=system)
    except UpstreamGenerationFailure as e:
        logger.warning(
            "Model call failed, continuing with empty record",
            error_type=type(e).__name__,
            error=e.message,
            error_details=e.details,
        )
        return ModelOutcome(degraded=True)

    log_external_call(
        logger, "openrouter", "generate",
        with_image=image is not None,
        response_chars=len(raw),
        duration_ms=int((time.time() - start) * 1000),
    )
    try:
        return ModelOutcome(record=extract(raw))
    except MalformedResponse as e:
        logger.warning(
            "Model response had no JSON object, continuing with empty record",
            error_type=type(e).__name__,
            raw_response=e.raw[:RAW_LOG_LIMIT],
        )
        return ModelOutcome(degraded=True)


def apply_rules(
    result: NormalizedContentResult,
    channel: str,
    toggles: Optional[Mapping[str, Any]],
    requirements: Any,
    registry: Optional[RuleRegistry] = None,
) -> NormalizedContentResult:
    """Run all matchers against the corrected text and merge the findings."""
    registry = registry or get_registry()
    text = result.corrected_text
    return result.model_copy(update={
        "forbidden_findings": registry.evaluate_forbidden(text, channel),
        "company_findings": registry.evaluate_required_facts(text, toggles),
        "dynamic_findings": registry.evaluate_adhoc(text, requirements),
    })


def assemble_response(
    result: NormalizedContentResult,
    channel: str,
    append_footer: bool = False,
    degraded: bool = False,
    registry: Optional[RuleRegistry] = None,
) -> CheckResponse:
    """Score a rule-checked result and build the caller-facing response."""
    registry = registry or get_registry()
    outcome = score(
        len(result.spelling_issues),
        len(result.forbidden_findings),
        len(result.company_findings),
        len(result.dynamic_findings),
    )

    data = result.model_dump()
    if append_footer:
        data["rewrite_text"] = compose_footer(result.rewrite_text, registry.brand, result.hashtags)

    return CheckResponse(
        **data,
        channel=channel,
        score=outcome.score,
        grade=outcome.grade,
        reason=outcome.reason,
        degraded=degraded,
    )


async def check_text(request: CheckRequest, registry: Optional[RuleRegistry] = None) -> CheckResponse:
    text = request.text if isinstance(request.text, str) else ""
    if not text.strip():
        raise InvalidInput("text", "no text to check")

    channel = (request.channel or settings.default_channel).lower()
    requirement_lines = parse_requirement_lines(request.requirements)

    outcome = await _run_model(build_text_prompt(text, requirement_lines), TEXT_CHECK_SYSTEM)
    result = normalize(outcome.record, text, mode=CheckMode.TEXT)
    result = apply_rules(result, channel, request.toggles, request.requirements, registry=registry)
    response = assemble_response(
        result, channel, append_footer=request.append_footer, degraded=outcome.degraded, registry=registry
    )

    log_business_event(
        logger, "text_checked",
        channel=channel, score=response.score, grade=response.grade, degraded=response.degraded,
    )
    return response


def validate_image(image_bytes: Optional[bytes], content_type: Optional[str]) -> str:
    """Return the normalized content type or raise InvalidInput."""
    if not image_bytes:
        raise InvalidInput("file", "no image uploaded")
    if len(image_bytes) > settings.max_image_bytes:
        raise InvalidInput("file", f"image exceeds the {settings.max_image_bytes} byte limit")
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype == "image/jpg":
        ctype = "image/jpeg"
    if ctype not in ALLOWED_IMAGE_TYPES:
        raise InvalidInput("file", f"unsupported image type: {content_type or 'unknown'}")
    return ctype


async def check_image(
    request: CheckRequest,
    image_bytes: Optional[bytes],
    content_type: Optional[str],
    registry: Optional[RuleRegistry] = None,
) -> CheckResponse:
    ctype = validate_image(image_bytes, content_type)
    channel = (request.channel or settings.default_channel).lower()
    requirement_lines = parse_requirement_lines(request.requirements)

    outcome = await _run_model(
        build_poster_prompt(requirement_lines), POSTER_CHECK_SYSTEM, image=(image_bytes, ctype)
    )
    # No caller text in image mode: the OCR text stands in as the original
    ocr_text = outcome.record.get("plain_text")
    fallback = ocr_text if isinstance(ocr_text, str) else ""
    result = normalize(outcome.record, fallback, mode=CheckMode.IMAGE)
    result = apply_rules(result, channel, request.toggles, request.requirements, registry=registry)
    response = assemble_response(
        result, channel, append_footer=request.append_footer, degraded=outcome.degraded, registry=registry
    )

    log_business_event(
        logger, "poster_checked",
        channel=channel, score=response.score, grade=response.grade, degraded=response.degraded,
        image_bytes=len(image_bytes or b""),
    )
    return response
