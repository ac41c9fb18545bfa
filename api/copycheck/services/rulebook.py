from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .guardrails import validate_contract

logger = logging.getLogger(__name__)


# Built-in rules for the chess & drawing centre. Deployments can replace them
# with a JSON file (RULEBOOK_PATH) following guardrails/rulebook.json.
_ABSOLUTE_PROMISE = {
    "id": "absolute_promise",
    "pattern": r"cam\s+kết\s+100\s*%|đảm\s+bảo\s+100\s*%",
    "label": "Cam kết tuyệt đối",
    "reason": "Không thể cam kết kết quả tuyệt đối cho việc học của trẻ.",
    "suggestion": "Dùng cách nói 'đồng hành cùng bé' thay cho cam kết 100%.",
    "severity": 3,
}
_SUPERLATIVE = {
    "id": "superlative_claim",
    "pattern": r"tốt\s+nhất|số\s+(?:1|một)\b|hàng\s+đầu|duy\s+nhất",
    "label": "Khẳng định so sánh tuyệt đối",
    "reason": "Quảng cáo 'tốt nhất', 'số 1' cần chứng minh và dễ bị báo cáo.",
    "suggestion": "Nêu điểm mạnh cụ thể (giáo viên, giáo trình, lớp nhỏ).",
    "severity": 2,
}
_GUARANTEED_RESULT = {
    "id": "guaranteed_result",
    "pattern": r"đảm\s+bảo\s+(?:đỗ|giỏi|thắng|đạt\s+giải|lên\s+trình)",
    "label": "Hứa hẹn kết quả",
    "reason": "Kết quả của mỗi bé khác nhau, không hứa hẹn thành tích.",
    "suggestion": "Nói về sự tiến bộ: 'giúp bé tự tin và tiến bộ mỗi buổi'.",
    "severity": 3,
}
_PRODIGY = {
    "id": "prodigy",
    "pattern": r"thần\s+đồng|thiên\s+tài",
    "label": "Gán nhãn cho trẻ",
    "reason": "Tránh gán nhãn gây áp lực cho trẻ và phụ huynh.",
    "suggestion": "Dùng 'các bạn nhỏ', 'các con'.",
    "severity": 1,
}
_FREE_FOREVER = {
    "id": "free_claim",
    "pattern": r"miễn\s+phí\s+100\s*%|hoàn\s+toàn\s+miễn\s+phí",
    "label": "Miễn phí tuyệt đối",
    "reason": "Chỉ buổi học thử là miễn phí; tránh gây hiểu nhầm về học phí.",
    "suggestion": "Ghi rõ 'học thử miễn phí 1 buổi'.",
    "severity": 2,
}
_CHEAPEST = {
    "id": "cheapest",
    "pattern": r"rẻ\s+nhất|giá\s+sốc",
    "label": "Giá rẻ nhất",
    "reason": "Thương hiệu giáo dục không cạnh tranh bằng giá rẻ.",
    "suggestion": "Dùng 'học phí ưu đãi' hoặc 'ưu đãi đăng ký sớm'.",
    "severity": 1,
}

DEFAULT_RULEBOOK: Dict[str, Any] = {
    "brand": {
        "name": "Trung tâm Cờ Vua – Vẽ",
        "branches": ["Cơ sở 1: 12 Nguyễn Trãi, Q.1", "Cơ sở 2: 45 Lê Văn Sỹ, Q.3"],
        "hotline": "0909 123 456",
        "slogan": "Chơi mà học – Học mà chơi",
        "hashtags": ["#CoVuaVe", "#CoVuaChoBe", "#HocVeChoBe"],
    },
    "channels": {
        "facebook": [_ABSOLUTE_PROMISE, _SUPERLATIVE, _GUARANTEED_RESULT, _PRODIGY, _FREE_FOREVER],
        "zalo": [_ABSOLUTE_PROMISE, _GUARANTEED_RESULT, _FREE_FOREVER, _CHEAPEST],
        "tiktok": [_ABSOLUTE_PROMISE, _SUPERLATIVE, _GUARANTEED_RESULT, _PRODIGY, _CHEAPEST],
    },
    "required": {
        "brand": {
            "id": "brand_mention",
            "pattern": r"cờ\s+vua\s*[-–&]\s*vẽ",
            "label": "tên thương hiệu (Cờ Vua – Vẽ)",
            "reason": "Mỗi bài đăng cần nhắc tên trung tâm.",
            "suggestion": "Thêm 'Trung tâm Cờ Vua – Vẽ' vào câu mở đầu.",
            "severity": 2,
        },
        "branch": {
            "id": "branch_mention",
            "pattern": r"cơ\s+sở\s*\d|chi\s+nhánh",
            "label": "thông tin cơ sở/chi nhánh",
            "reason": "Phụ huynh cần biết địa điểm học.",
            "suggestion": "Liệt kê các cơ sở ở cuối bài.",
            "severity": 1,
        },
        "contact": {
            "id": "contact_line",
            "pattern": r"(?:hotline|liên\s+hệ|sđt|zalo)\s*[:：]?\s*\+?\d[\d .]{7,}",
            "label": "dòng liên hệ (hotline)",
            "reason": "Bài đăng phải có số điện thoại liên hệ.",
            "suggestion": "Thêm 'Hotline: 0909 123 456'.",
            "severity": 2,
        },
        "slogan": {
            "id": "slogan",
            "pattern": r"chơi\s+mà\s+học",
            "label": "slogan",
            "reason": "Slogan giúp nhận diện thương hiệu.",
            "suggestion": "Kết bài bằng 'Chơi mà học – Học mà chơi'.",
            "severity": 1,
        },
        "service": {
            "id": "service_description",
            "pattern": r"(?:lớp|khóa|khoá)\s+(?:học\s+)?(?:cờ\s+vua|vẽ|mỹ\s+thuật)",
            "label": "mô tả dịch vụ (lớp cờ vua/vẽ)",
            "reason": "Phụ huynh cần biết trung tâm dạy gì.",
            "suggestion": "Nêu rõ 'lớp cờ vua' hoặc 'lớp vẽ' cho bé.",
            "severity": 1,
        },
    },
}


def load_rulebook(path: Optional[str] = None) -> Dict[str, Any]:
    """Return the rulebook at ``path`` (validated), or the built-in one."""
    if not path:
        return copy.deepcopy(DEFAULT_RULEBOOK)

    with open(Path(path), "r", encoding="utf-8") as f:
        rulebook = json.load(f)
    validate_contract("rulebook.json", rulebook)
    logger.info(f"Loaded rulebook from {path}")
    return rulebook
