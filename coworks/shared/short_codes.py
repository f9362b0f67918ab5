"""Short code helpers for branches and seating types"""

import re
from typing import Callable, Optional

from ..models import SeatingTypeName

BRANCH_SHORT_CODES = {
    "naagarbhaavi": "ngb",
    "outer ring road": "orr",
    "electronic city": "ec",
    "whitefield": "wtf",
    "indiranagar": "ind",
    "koramangala": "kor",
    "jayanagar": "jay",
    "mg road": "mgr",
    "hsr layout": "hsr",
    "marathahalli": "mrt",
}

SEATING_TYPE_SHORT_CODES = {
    SeatingTypeName.HOT_DESK: "hot",
    SeatingTypeName.DEDICATED_DESK: "ded",
    SeatingTypeName.CUBICLE: "cub",
    SeatingTypeName.MEETING_ROOM: "meet",
    SeatingTypeName.DAILY_PASS: "day",
}


def branch_short_code_for(name: str) -> str:
    """Known code for a branch name, else the first three letters of it"""
    key = name.strip().lower()
    for known, code in BRANCH_SHORT_CODES.items():
        if known in key:
            return code
    letters = re.sub(r"[^a-z]", "", key)
    return letters[:3] or "br"


def seating_type_for_short_code(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    lookup = {v: k for k, v in SEATING_TYPE_SHORT_CODES.items()}
    return lookup.get(code.lower())


def make_unique(code: str, exists: Callable[[str], bool]) -> str:
    """Append 2, 3, ... to code until exists() is False"""
    candidate = code
    suffix = 2
    while exists(candidate):
        candidate = f"{code}{suffix}"
        suffix += 1
    return candidate
