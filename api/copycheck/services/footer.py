from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Optional

_HASHTAG_RE = re.compile(r"#[^\s#.,!?;:()\[\]'\"]+")


def _footer_lines(brand: Mapping[str, Any]) -> List[str]:
    lines: List[str] = []
    name = brand.get("name")
    if isinstance(name, str) and name.strip():
        lines.append(name.strip())
    branches = brand.get("branches")
    if isinstance(branches, list):
        lines.extend(b.strip() for b in branches if isinstance(b, str) and b.strip())
    hotline = brand.get("hotline")
    if isinstance(hotline, str) and hotline.strip():
        lines.append(f"Hotline: {hotline.strip()}")
    slogan = brand.get("slogan")
    if isinstance(slogan, str) and slogan.strip():
        lines.append(slogan.strip())
    return lines


def _missing_hashtags(text: str, candidates: Iterable[Any]) -> List[str]:
    # Whole tags only: #CoVuaVe is not present just because #CoVuaVeChoBe is
    seen = {t.casefold() for t in _HASHTAG_RE.findall(text)}
    missing: List[str] = []
    for tag in candidates:
        if not isinstance(tag, str) or not tag.strip():
            continue
        tag = tag.strip()
        if not tag.startswith("#"):
            tag = f"#{tag}"
        key = tag.casefold()
        if key in seen:
            continue
        seen.add(key)
        missing.append(tag)
    return missing


def compose_footer(
    rewrite_text: str,
    brand: Optional[Mapping[str, Any]],
    hashtags: Optional[Iterable[Any]] = None,
    include_brand: bool = True,
) -> str:
    """Append the brand footer and any missing hashtags to ``rewrite_text``.

    Footer lines (brand name, branches, hotline, slogan) already present in
    the text, compared case-insensitively, are skipped. Hashtags come from the
    model first, then from the brand, deduplicated. The input is returned
    unchanged when nothing is missing.
    """
    text = rewrite_text or ""
    brand = brand if isinstance(brand, Mapping) else {}
    folded = text.casefold()

    blocks: List[str] = []
    if include_brand:
        # Hotline is checked by its number so "SĐT 0909..." counts as present
        hotline = brand.get("hotline") if isinstance(brand.get("hotline"), str) else ""
        lines = []
        for line in _footer_lines(brand):
            needle = hotline.strip() if hotline and line.endswith(hotline.strip()) else line
            if needle.casefold() not in folded:
                lines.append(line)
        if lines:
            blocks.append("\n".join(lines))

    brand_tags = brand.get("hashtags") if isinstance(brand.get("hashtags"), list) else []
    tags = _missing_hashtags(text, list(hashtags or []) + list(brand_tags))
    if tags:
        blocks.append(" ".join(tags))

    if not blocks:
        return text
    separator = "\n\n" if text.strip() else ""
    return text.rstrip() + separator + "\n\n".join(blocks)
