"""
Migration phases, run strictly one after another.

Every phase finishes all of its writes before returning, so a later phase can
rely on what an earlier one created (the link pass needs every UE variant; the
comment pass needs every semester and UE).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from dependency_order import count_forward_references, order_records
from legacy_source import load_comments, load_course_records, load_users
from lookups import (
    BRANCHES,
    CREDIT_CATEGORIES,
    FALLBACK_CREDIT_CATEGORY,
    address_privacy_level,
    credit_category_code,
)
from models import WORKLOAD_FIELDS, LegacyCourseRecord, TargetCourseVariant, TimePeriod
from outcomes import UpsertTracker
from periods import resolve_period, semester_periods
from requirement_linker import link
from translator import translate

INSCRIPTION_CODE_LENGTH = 4
_INSCRIPTION_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


# ── Lookups ───────────────────────────────────────────────────────────────────

def create_credit_categories(tracker: UpsertTracker) -> list[dict]:
    items = [({"code": code}, {"name": name}) for code, name in CREDIT_CATEGORIES]
    return tracker.run_batch("credit_category", items)


def create_semesters(tracker: UpsertTracker, first_year: int, last_year: int) -> list[TimePeriod]:
    items = [
        ({"code": p.code}, {"start": p.start, "end": p.end})
        for p in semester_periods(first_year, last_year)
    ]
    rows = tracker.run_batch("semester", items)
    return [TimePeriod(code=r["code"], start=r["start"], end=r["end"]) for r in rows]


def create_branches(tracker: UpsertTracker) -> None:
    tracker.run_batch("branch", [
        ({"code": code}, {"name": name, "description": ""})
        for code, (name, _) in BRANCHES.items()
    ])
    tracker.run_batch("branch_option", [
        ({"code": option_code, "branch_code": branch_code}, {"name": option_name, "description": ""})
        for branch_code, (_, options) in BRANCHES.items()
        for option_code, option_name in options
    ])


# ── UEs ───────────────────────────────────────────────────────────────────────

def assign_inscription_codes(
    base_codes: list[str],
    existing: Optional[dict[str, str]] = None,
) -> dict[str, str]:
    """
    Four-character inscription code per base code, unique across the target.

    `existing` holds the codes already stored (UE code → inscription code);
    those UEs keep theirs whatever the batch order. New UEs take the first four
    characters of their base code, and clashes replace the last character with
    the first free one of 0-9A-Z.
    """
    existing = existing or {}
    taken: set[str] = set(existing.values())
    assigned: dict[str, str] = {}
    for base_code in base_codes:
        if base_code in assigned:
            continue
        if base_code in existing:
            assigned[base_code] = existing[base_code]
            continue
        candidate = base_code[:INSCRIPTION_CODE_LENGTH]
        if candidate in taken:
            stem = candidate[:INSCRIPTION_CODE_LENGTH - 1]
            candidate = next(
                (stem + ch for ch in _INSCRIPTION_ALPHABET if stem + ch not in taken),
                None,
            )
            n = 0
            while candidate is None:
                n += 1
                if f"{stem}{n}" not in taken:
                    candidate = f"{stem}{n}"
        taken.add(candidate)
        assigned[base_code] = candidate
    return assigned


def _variant_payload(record: LegacyCourseRecord, ident, category: str) -> dict:
    return {
        "ue_code": ident.base_code,
        "language": ident.language,
        "location": ident.location,
        **{field: int(record.workload.get(field, 0)) for field in WORKLOAD_FIELDS},
        "credits": int(record.credits),
        "category_code": category,
        "program": record.program,
        "objectives": record.objectives,
        "languages": record.languages,
        "minors": record.minors,
        "comment": record.comment,
    }


def migrate_courses(tracker: UpsertTracker, records: list[LegacyCourseRecord]) -> list[TargetCourseVariant]:
    """
    Create one UE per base code and one variant per variant code.

    Requirement links are not attached here; see link_requirements().
    """
    ordered = order_records(records)
    forward = count_forward_references(ordered)
    if forward:
        print(f"[INFO] ue: {forward} prerequisite reference(s) still point forward after ordering")

    idents = [(record, translate(record.code, record.comment)) for record in ordered]
    inscription_codes = assign_inscription_codes(
        [ident.base_code for _, ident in idents],
        tracker.store.inscription_codes(),
    )

    ue_items: dict[str, tuple[dict, dict]] = {}
    variant_items: dict[str, tuple[dict, dict]] = {}
    for record, ident in idents:
        if ident.base_code not in ue_items:
            ue_items[ident.base_code] = (
                {"code": ident.base_code},
                {"name": record.name, "inscription_code": inscription_codes[ident.base_code]},
            )
        if ident.variant_code in variant_items:
            tracker.skip(
                "ue_variant",
                f"{record.code} translates to {ident.variant_code}, already migrated from another UE; duplicate skipped.",
            )
            continue
        category = credit_category_code(record.category)
        if category is None:
            tracker.skip(
                "credit_category",
                f"unknown category {record.category!r} on {record.code}; using {FALLBACK_CREDIT_CATEGORY}.",
            )
            category = FALLBACK_CREDIT_CATEGORY
        variant_items[ident.variant_code] = (
            {"code": ident.variant_code},
            _variant_payload(record, ident, category),
        )

    tracker.run_batch("ue", list(ue_items.values()))
    rows = tracker.run_batch("ue_variant", list(variant_items.values()))
    return [TargetCourseVariant(code=row["code"], base_code=row["ue_code"]) for row in rows]


def link_requirements(
    tracker: UpsertTracker,
    variants: list[TargetCourseVariant],
    records: list[LegacyCourseRecord],
) -> int:
    linked = link(tracker.store, variants, records, workers=tracker.workers)
    tracker.record_links("ue_requirement", linked)
    return linked


# ── Comments ──────────────────────────────────────────────────────────────────

def stored_periods(tracker: UpsertTracker) -> list[TimePeriod]:
    return [
        TimePeriod(code=row["code"], start=row["start"], end=row["end"])
        for row in tracker.store.list_semesters()
    ]


def migrate_comments(tracker: UpsertTracker, comments, periods: list[TimePeriod]) -> int:
    """
    Migrate comments into the semester they were written in. Returns how many were written.

    Comments sharing a natural key `(ue_code, created_at)` keep the first one in
    legacy order; later ones are skipped with a warning.
    """
    items = []
    seen: set[tuple] = set()
    for comment in comments:
        ue_code = translate(comment.ue_code).base_code
        semester = resolve_period(comment.created_at, periods)
        if semester is None:
            tracker.skip(
                "ue_comment",
                f"no semester contains {comment.created_at} (UE {comment.ue_code}); comment skipped.",
            )
            continue
        if (ue_code, comment.created_at) in seen:
            tracker.skip(
                "ue_comment",
                f"another comment on {ue_code} was written at {comment.created_at}; duplicate skipped.",
            )
            continue
        seen.add((ue_code, comment.created_at))
        updated_at = comment.updated_at or comment.created_at
        items.append((
            {"ue_code": ue_code, "created_at": comment.created_at},
            {
                "body": comment.body,
                "is_anonymous": True,
                "updated_at": updated_at,
                "validated_at": updated_at if comment.is_valid else None,
                "semester_code": semester.code,
            },
        ))
    return len(tracker.run_batch("ue_comment", items))


# ── Users ─────────────────────────────────────────────────────────────────────

def _profile_payload(user) -> dict:
    country, city, street = user.address_visibility
    return {
        **user.profile,
        "birthday": user.birthday,
        "privacy_mail_utt": True,
        "privacy_address": address_privacy_level(country, city, street),
        "want_day_notif": False,
    }


def migrate_users(
    tracker: UpsertTracker,
    users,
    periods: list[TimePeriod],
    known_ues: set[str],
    now: Optional[datetime] = None,
) -> None:
    """
    Migrate accounts, their profiles, then UE subscriptions in the current semester.

    A login seen twice keeps its first row; later ones are skipped with a warning.
    """
    unique_users = []
    logins = set()
    for user in users:
        if user.login in logins:
            tracker.skip("user", f"login {user.login} appears more than once; duplicate skipped.")
            continue
        logins.add(user.login)
        unique_users.append(user)
    users = unique_users

    tracker.run_batch("user", [
        (
            {"login": user.login},
            {
                "student_id": user.student_id,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "user_type": "STUDENT" if user.is_student else "EMPLOYEE",
                "mail_utt": user.mail,
                "mail_personal": user.personal_mail,
            },
        )
        for user in users
    ])
    tracker.run_batch("user_profile", [({"login": user.login}, _profile_payload(user)) for user in users])

    now = now or datetime.now()
    current = resolve_period(now, periods)
    if current is None:
        tracker.skip("ue_subscription", f"no semester contains {now}; subscriptions skipped.")
        return

    items = []
    seen = set()
    for user in users:
        for legacy_code in user.subscriptions:
            ue_code = translate(legacy_code).base_code
            if ue_code not in known_ues:
                tracker.skip("ue_subscription", f"{user.login}: unknown UE {legacy_code}; subscription skipped.")
                continue
            key = (user.login, ue_code)
            if key in seen:
                continue
            seen.add(key)
            items.append(({"user_login": user.login, "ue_code": ue_code, "semester_code": current.code}, {}))
    tracker.run_batch("ue_subscription", items)


# ── Full run ──────────────────────────────────────────────────────────────────

def run_migration(
    source,
    store,
    workers: int = 1,
    first_year: int = 2010,
    last_year: int = 2030,
    drop_all: bool = False,
    with_users: bool = False,
    now: Optional[datetime] = None,
) -> UpsertTracker:
    """Run every phase in order and return the tracker holding the counts."""
    tracker = UpsertTracker(store, workers=workers)

    records = load_course_records(source)
    comments = load_comments(source)
    users = load_users(source) if with_users else []
    print(f"[INFO] Read {len(records)} UEs and {len(comments)} comments from old database")

    if drop_all:
        print("[INFO] Clearing target database (--drop-all)")
        store.clear()

    create_credit_categories(tracker)
    create_semesters(tracker, first_year, last_year)
    variants = migrate_courses(tracker, records)
    link_requirements(tracker, variants, records)
    migrate_comments(tracker, comments, stored_periods(tracker))
    create_branches(tracker)
    if with_users:
        known_ues = {v.base_code for v in variants}
        migrate_users(tracker, users, stored_periods(tracker), known_ues, now=now)
    return tracker
