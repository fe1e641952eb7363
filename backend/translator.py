import re

from models import TargetCourseIdentifier

DEFAULT_LANGUAGE = "FR"
DEFAULT_LOCATION = "TRO"
SECONDARY_LOCATION = "REI"
LEGACY_MARKER = "LEG"

# "UE réalisée à Reims", "dispensée à Reims", "a Reims" ...
SECONDARY_CAMPUS_RE = re.compile(r'(?:^|\W)[àa]\s+reims(?:$|\W)', re.IGNORECASE)

# Trailing letter on legacy codes longer than 4 chars: MT03A, MT03P, MT03R.
# P carries no language/location information.
MODIFIERS = {
    "A": {"language": "EN"},
    "P": {},
    "R": {"location": SECONDARY_LOCATION},
}
MODIFIER_MIN_LENGTH = 5

# Language courses are identified by their prefix, whatever the suffix says.
LANGUAGE_PREFIXES = (
    ("LG", "GE"),
    ("IT", "IT"),
    ("KO", "KO"),
    ("LC", "CH"),
    ("LP", "PO"),
    ("LS", "SP"),
)


def held_at_secondary_campus(comment) -> bool:
    return bool(comment) and SECONDARY_CAMPUS_RE.search(str(comment)) is not None


def translate(code, comment="") -> TargetCourseIdentifier:
    """
    Derives the target UE code and UE-offering variant code of a legacy UE.

    Decision table (applied in order):
      default                         → FR, TRO
      comment says "à Reims"          → location REI
      len(code) > 4, suffix A         → strip suffix, language EN
      len(code) > 4, suffix R         → strip suffix, location REI
      len(code) > 4, suffix P         → strip suffix only
      base code starts with a prefix  → language from LANGUAGE_PREFIXES

    Variant code is "{base}_{language}_{location}_LEG". Never raises.
    """
    raw = str(code or "").strip()
    language = DEFAULT_LANGUAGE
    location = DEFAULT_LOCATION

    if held_at_secondary_campus(comment):
        location = SECONDARY_LOCATION

    base_code = raw
    if len(raw) >= MODIFIER_MIN_LENGTH and raw[-1] in MODIFIERS:
        base_code = raw[:-1]
        effects = MODIFIERS[raw[-1]]
        language = effects.get("language", language)
        location = effects.get("location", location)

    for prefix, prefix_language in LANGUAGE_PREFIXES:
        if base_code.startswith(prefix):
            language = prefix_language
            break

    return TargetCourseIdentifier(
        base_code=base_code,
        variant_code=f"{base_code}_{language}_{location}_{LEGACY_MARKER}",
        language=language,
        location=location,
    )
