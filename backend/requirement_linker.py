from models import LegacyCourseRecord, TargetCourseVariant
from outcomes import fan_out
from prereq_text import has_prerequisites, mentioned_codes
from translator import translate


def resolve_requirements(
    record: LegacyCourseRecord,
    variants: list[TargetCourseVariant],
) -> list[str]:
    """
    Variant codes whose base code appears as a whole word in the record's
    prerequisite text. The record's own variant is never its own requirement.
    """
    if not has_prerequisites(record.prerequisites):
        return []
    own_code = translate(record.code, record.comment).variant_code
    mentioned = set(mentioned_codes(record.prerequisites, [v.base_code for v in variants]))
    return [
        variant.code
        for variant in variants
        if variant.code != own_code and variant.base_code in mentioned
    ]


def plan_links(
    variants: list[TargetCourseVariant],
    records: list[LegacyCourseRecord],
) -> dict[str, list[str]]:
    """
    Requirement codes to attach, per variant code.

    Records translating to the same variant have their matches merged.
    Records without any match do not appear.
    """
    plan: dict[str, list[str]] = {}
    for record in records:
        matches = resolve_requirements(record, variants)
        if not matches:
            continue
        variant_code = translate(record.code, record.comment).variant_code
        codes = plan.setdefault(variant_code, [])
        for code in matches:
            if code not in codes:
                codes.append(code)
    return plan


def link(
    store,
    variants: list[TargetCourseVariant],
    records: list[LegacyCourseRecord],
    workers: int = 1,
) -> int:
    """
    Attach requirement links to variants that already exist in the target.

    Must run after every variant of the batch has been written. Returns the
    number of variants that received at least one new link.
    """
    plan = plan_links(variants, records)
    new_counts = fan_out(
        lambda item: store.update_references(item[0], item[1]),
        list(plan.items()),
        workers,
    )
    by_code = {variant.code: variant for variant in variants}
    for variant_code, codes in plan.items():
        if variant_code in by_code:
            by_code[variant_code].requirements.update(codes)
    return sum(1 for new in new_counts if new > 0)
