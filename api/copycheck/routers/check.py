from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Body, File, Form, UploadFile

from ..models.schemas import CheckRequest, CheckResponse
from ..services.checker import check_image, check_text


router = APIRouter(prefix="/api", tags=["check"])


def _parse_toggles(raw: str) -> Dict[str, bool]:
    """Comma separated toggle names from a form field, e.g. "brand,contact"."""
    return {name.strip(): True for name in (raw or "").split(",") if name.strip()}


@router.post("/check", response_model=CheckResponse)
async def check(request: CheckRequest = Body(...)):
    """
    Check a piece of marketing copy.

    Flow:
    1. Ask the model for corrections, a rewrite and hashtags
    2. Recover and normalize its JSON
    3. Run forbidden-phrase, brand-fact and ad-hoc rules on the corrected text
    4. Score and grade the result
    """
    return await check_text(request)


@router.post("/check-image", response_model=CheckResponse)
async def check_poster(
    file: Optional[UploadFile] = File(None),
    channel: Optional[str] = Form(None),
    toggles: str = Form(""),
    requirements: str = Form(""),
    append_footer: bool = Form(False),
):
    """Check a poster image: OCR, corrections and design feedback from the model, rules on the read text."""
    content = await file.read() if file is not None else b""
    content_type = file.content_type if file is not None else None
    request = CheckRequest(
        text="",
        channel=channel,
        toggles=_parse_toggles(toggles),
        requirements=requirements,
        append_footer=append_footer,
    )
    return await check_image(request, content, content_type)
