from functools import cmp_to_key

from models import LegacyCourseRecord
from prereq_text import mentions_code


def compare_records(a: LegacyCourseRecord, b: LegacyCourseRecord) -> int:
    """
    Pairwise comparator: a record named in the other's prerequisites sorts first.

    Returns 0 when neither mentions the other (no swap under a stable sort).
    """
    if mentions_code(b.prerequisites, a.code):
        return -1
    if mentions_code(a.prerequisites, b.code):
        return 1
    return 0


def order_records(records: list[LegacyCourseRecord]) -> list[LegacyCourseRecord]:
    """
    Stable, best-effort reordering so prerequisites come before their dependents.

    Only pairs are inspected, so the comparator is not transitive: direct
    prerequisite pairs are honored, but cycles and longer chains may keep a
    dependent ahead of its prerequisite. Requirement links are attached in a
    later pass once every variant exists, so ordering is never relied on for
    correctness.
    """
    return sorted(records, key=cmp_to_key(compare_records))


def build_dependents_map(records: list[LegacyCourseRecord]) -> dict[str, list[str]]:
    """
    Reverse prerequisite map: for each legacy code, the codes whose free text
    mentions it.

    Returns: {"MT01": ["MT02", "MT03"], ...}

    Only direct mentions (one level deep). Used for operator reporting.
    """
    dependents: dict[str, list[str]] = {}
    for prereq in records:
        for record in records:
            if record.code == prereq.code:
                continue
            if mentions_code(record.prerequisites, prereq.code):
                dependents.setdefault(prereq.code, [])
                if record.code not in dependents[prereq.code]:
                    dependents[prereq.code].append(record.code)
    return dependents


def count_forward_references(records: list[LegacyCourseRecord]) -> int:
    """Number of (record, prerequisite) pairs where the prerequisite comes later."""
    position = {}
    for i, record in enumerate(records):
        position.setdefault(record.code, i)

    forward = 0
    dependents = build_dependents_map(records)
    for prereq_code, dependent_codes in dependents.items():
        for dependent_code in dependent_codes:
            if position[prereq_code] > position[dependent_code]:
                forward += 1
    return forward
