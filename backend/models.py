"""
Shared record types for the legacy migration.

Legacy records are read-only snapshots of source rows. Target types describe
what the migration writes; none of them outlive a single run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


WORKLOAD_FIELDS = ("cm", "td", "tp", "the", "project", "internship")


@dataclass(frozen=True)
class LegacyCourseRecord:
    """One `etu_uvs` row, cleaned but otherwise untouched."""

    code: str
    name: str = ""
    prerequisites: str = ""
    workload: dict = field(default_factory=dict)
    credits: int = 0
    category: str = ""
    comment: str = ""
    program: str = ""
    objectives: str = ""
    languages: str = ""
    minors: str = ""


@dataclass(frozen=True)
class LegacyComment:
    ue_code: str
    body: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    is_valid: bool


@dataclass(frozen=True)
class LegacyUser:
    login: str
    student_id: int = 0
    first_name: str = ""
    last_name: str = ""
    is_student: bool = True
    mail: str = ""
    personal_mail: str = ""
    subscriptions: tuple = ()
    birthday: Optional[datetime] = None
    # user_profiles column → value (infos, social networks, privacy, GDPR,
    # preferences, address)
    profile: dict = field(default_factory=dict)
    # (country, city, street) visibility, folded into one address privacy level
    address_visibility: tuple = (False, False, False)


@dataclass(frozen=True)
class TargetCourseIdentifier:
    base_code: str
    variant_code: str
    language: str = "FR"
    location: str = "TRO"


@dataclass
class TargetCourseVariant:
    code: str
    base_code: str
    requirements: set = field(default_factory=set)


@dataclass(frozen=True)
class TimePeriod:
    code: str
    start: datetime
    end: datetime
