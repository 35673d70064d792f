"""Profession-typed profile helpers: whitelists, completion score, public projection."""
from __future__ import annotations

from typing import Any, Mapping

from .errors import InvalidArgumentError

PROFESSION_TYPES = ("salaried", "freelancer", "business", "student")

# Keys stored in Account.profile (free-form JSON) that callers may update.
PROFILE_KEYS = (
    "profile_picture",
    "custom_tags",
    "searching_for",
    "looking_for",
    "describe_need",
    "what_you_want",
    "what_you_can_offer",
    "regions",
    "portfolio",
)
PUBLIC_TAG_KEYS = ("what_you_can_offer", "what_you_want", "custom_tags", "searching_for", "looking_for")

_BASIC_WEIGHTS = {"full_name": 5, "email": 5, "phone": 5, "profile_picture": 5, "profession_type": 10}
_COMMON_WEIGHTS = {
    "custom_tags": 5,
    "searching_for": 5,
    "looking_for": 5,
    "describe_need": 10,
    "what_you_want": 5,
    "what_you_can_offer": 5,
    "regions": 5,
}
_PROFESSION_WEIGHTS = {
    "salaried": {"company_name": 8, "company_logo": 4, "designation": 8, "role": 4, "bio": 6},
    "business": {"business_name": 8, "business_logo": 4, "business_bio": 10, "business_interest": 8},
    "student": {"college_name": 8, "college_logo": 4, "degree_name": 8, "year": 4, "bio": 6},
}
_PROFESSION_WEIGHTS["freelancer"] = _PROFESSION_WEIGHTS["business"]

BASIC_MAX = sum(_BASIC_WEIGHTS.values())
COMMON_MAX = sum(_COMMON_WEIGHTS.values())
PROFESSION_MAX = 30
MAX_SCORE = BASIC_MAX + COMMON_MAX + PROFESSION_MAX


def validate_profession_type(value: str | None) -> str:
    candidate = (value or "").strip().lower()
    if candidate not in PROFESSION_TYPES:
        raise InvalidArgumentError(f"Invalid profession type: {value!r}")
    return candidate


def _filled(value: Any) -> bool:
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return bool(value)


def _score(source: Mapping[str, Any], weights: Mapping[str, int]) -> int:
    return sum(weight for key, weight in weights.items() if _filled(source.get(key)))


def _percent(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def profile_completion(account: Any) -> dict:
    """Weighted completion: basic fields 30, common tags 40, profession info 30."""
    profile = account.profile or {}
    basic_source = {
        "full_name": account.full_name,
        "email": account.email,
        "phone": account.phone,
        "profile_picture": profile.get("profile_picture"),
        "profession_type": account.profession_type,
    }
    basic = _score(basic_source, _BASIC_WEIGHTS)
    common = _score(profile, _COMMON_WEIGHTS)
    profession = _score(account.profession_info or {}, _PROFESSION_WEIGHTS.get(account.profession_type, {}))
    score = basic + common + profession
    return {
        "percentage": _percent(score, MAX_SCORE),
        "score": score,
        "max_score": MAX_SCORE,
        "breakdown": {
            "basic": _percent(basic, BASIC_MAX),
            "common": _percent(common, COMMON_MAX),
            "profession_specific": _percent(profession, PROFESSION_MAX),
        },
    }


def public_profile(account: Any) -> dict:
    """Fields another account may see after resolving this account's share code."""
    profile = account.profile or {}
    data = {
        "id": account.id,
        "full_name": account.full_name,
        "profile_picture": profile.get("profile_picture"),
        "profession_type": account.profession_type,
        "profession_info": dict(account.profession_info or {}),
        "share_code": account.share_code,
        "regions": list(profile.get("regions") or []),
    }
    for key in PUBLIC_TAG_KEYS:
        data[key] = list(profile.get(key) or [])
    return data
