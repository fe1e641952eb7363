import re
from functools import lru_cache

# Free-text "antecedents" values that mean "no prerequisite".
NONE_VALUES = {"", "none", "aucun", "aucune", "néant", "-", "n/a"}


@lru_cache(maxsize=4096)
def code_pattern(code: str) -> re.Pattern:
    """Whole-word pattern for a UE code: MT03 matches "MT03, MT04", not "MT031"."""
    return re.compile(rf'(^|\W){re.escape(code)}($|\W)')


def has_prerequisites(text) -> bool:
    if text is None:
        return False
    return str(text).strip().lower() not in NONE_VALUES


def mentions_code(text, code) -> bool:
    """True when `code` appears as a whole word inside the free-text `text`."""
    if not code or not has_prerequisites(text):
        return False
    return code_pattern(str(code)).search(str(text)) is not None


def mentioned_codes(text, codes) -> list[str]:
    """Codes from `codes` mentioned in `text`, in the order of `codes`, no duplicates."""
    if not has_prerequisites(text):
        return []
    found: list[str] = []
    seen: set[str] = set()
    for code in codes:
        if code in seen:
            continue
        if mentions_code(text, code):
            found.append(code)
            seen.add(code)
    return found
