"""
Read access to the legacy (etu.utt.fr) database.

The source is only ever asked to run a text query and hand back rows. Loaders
push those rows through a DataFrame to fill missing columns and coerce types
before building the immutable legacy records.
"""

from __future__ import annotations

from contextlib import contextmanager

import pandas as pd
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from config import MigrationError
from models import LegacyComment, LegacyCourseRecord, LegacyUser

UE_QUERY = "SELECT * FROM etu_uvs WHERE isOld = 0 ORDER BY id"
COMMENT_QUERY = (
    "SELECT c.body, c.createdAt, c.updatedAt, c.isValide, u.code "
    "FROM etu_uvs_comments c "
    "INNER JOIN etu_uvs u ON c.uv_id = u.id "
    "WHERE c.deletedAt IS NULL AND u.isOld = 0 "
    "ORDER BY c.id"
)
USER_QUERY = "SELECT * FROM etu_users ORDER BY id"

_BOOL_TRUTHY = {"true", "1", "yes", "y"}

UE_TEXT_COLUMNS = [
    "code", "name", "antecedents", "category", "programme",
    "objectifs", "languages", "mineurs", "commentaire",
]
UE_INT_COLUMNS = ["cm", "td", "tp", "the", "projet", "stage", "credits"]
# legacy column → workload field
WORKLOAD_COLUMNS = {
    "cm": "cm",
    "td": "td",
    "tp": "tp",
    "the": "the",
    "projet": "project",
    "stage": "internship",
}

USER_TEXT_COLUMNS = ["login", "firstName", "lastName", "mail", "personnalMail", "uvs"]
# legacy column → user_profiles column
USER_PROFILE_TEXT_COLUMNS = {
    "surnom": "nickname",
    "passions": "passions",
    "website": "website",
    "sex": "sex",
    "avatar": "avatar",
    "nationality": "nationality",
    "facebook": "facebook",
    "twitter": "twitter",
    "linkedin": "linkedin",
    "discordTag": "discord",
    "language": "language",
    "address": "street",
    "postalCode": "postal_code",
    "city": "city",
    "country": "country",
}
USER_PROFILE_FLAG_COLUMNS = {
    "birthdayDisplayOnlyAge": "privacy_birthday_only_age",
    "isKeepingAccount": "keep_account",
    "isDeletingEverything": "delete_everything",
    "daymail": "want_daymail",
    "wantsJoinUTTDiscord": "want_discord_utt",
}
USER_PRIVACY_COLUMNS = {
    "personnalMailPrivacy": "privacy_mail_personal",
    "phoneNumberPrivacy": "privacy_phone",
    "birthdayPrivacy": "privacy_birthday",
    "sexPrivacy": "privacy_sex",
    "nationalityPrivacy": "privacy_nationality",
    "discordTagPrivacy": "privacy_discord",
}
ADDRESS_PRIVACY_COLUMNS = ("countryPrivacy", "cityPrivacy", "addressPrivacy")

# etu_users privacy columns: 100 = public, 200 = private
LEGACY_PRIVACY_PUBLIC = 100


class LegacySourceUnavailable(MigrationError):
    pass


class LegacySource:
    """Query capability over the legacy database."""

    def __init__(self, engine):
        self.engine = engine

    def query(self, sql: str) -> list[dict]:
        with self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(text(sql)).mappings()]


@contextmanager
def open_legacy_source(url: str):
    """
    Connect to the legacy database and yield a LegacySource.

    Connection problems raise LegacySourceUnavailable right away, before any
    write has been attempted. The engine is disposed on every exit path.
    """
    try:
        engine = create_engine(url)
    except (SQLAlchemyError, ImportError, ValueError) as exc:
        raise LegacySourceUnavailable(f"Invalid legacy database URL: {exc}") from exc
    try:
        try:
            with engine.connect():
                pass
        except SQLAlchemyError as exc:
            raise LegacySourceUnavailable(
                f"Error connecting to old database ({exc.__class__.__name__})"
            ) from exc
        print("[OK] Connected to old database")
        yield LegacySource(engine)
    finally:
        engine.dispose()


# ── Row normalization ─────────────────────────────────────────────────────────

def _safe_bool_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a boolean column (0/1, "true"/"false", NULL) to Python bool."""
    def _coerce(x):
        if x is None or (not isinstance(x, str) and pd.isna(x)):
            return False
        if isinstance(x, bool):
            return x
        if isinstance(x, (int, float)):
            return bool(x)
        if isinstance(x, bytes):
            return x not in (b"", b"\x00", b"0")
        return str(x).strip().lower() in _BOOL_TRUTHY

    if col in df.columns:
        df[col] = df[col].apply(_coerce).astype(object)
    return df


def _privacy_public_col(df: pd.DataFrame, col: str) -> pd.DataFrame:
    """Normalize a legacy privacy column to True (public) / False (private or NULL)."""
    if col not in df.columns:
        df[col] = None
    numeric = pd.to_numeric(df[col], errors="coerce")
    df[col] = (numeric == LEGACY_PRIVACY_PUBLIC).astype(object)
    return df


def _clean_text_cols(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = ""
        df[col] = df[col].fillna("").astype(str).str.strip()
    return df


def _clean_int_cols(df: pd.DataFrame, cols: list[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = 0
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
    return df


def _to_datetime(value):
    if value is None or pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


# ── Loaders ───────────────────────────────────────────────────────────────────

def load_course_records(source: LegacySource) -> list[LegacyCourseRecord]:
    """Load current (non-archived) UEs as LegacyCourseRecord, in source order."""
    df = pd.DataFrame(source.query(UE_QUERY))
    df = _clean_text_cols(df, UE_TEXT_COLUMNS)
    df = _clean_int_cols(df, UE_INT_COLUMNS)
    df = df[df["code"] != ""]

    records = []
    for row in df.to_dict("records"):
        records.append(LegacyCourseRecord(
            code=row["code"],
            name=row["name"],
            prerequisites=row["antecedents"],
            workload={field: int(row[col]) for col, field in WORKLOAD_COLUMNS.items()},
            credits=int(row["credits"]),
            category=row["category"],
            comment=row["commentaire"],
            program=row["programme"],
            objectives=row["objectifs"],
            languages=row["languages"],
            minors=row["mineurs"],
        ))
    return records


def load_comments(source: LegacySource) -> list[LegacyComment]:
    """Load non-deleted comments on current UEs."""
    df = pd.DataFrame(source.query(COMMENT_QUERY))
    df = _clean_text_cols(df, ["body", "code"])
    for col in ("createdAt", "updatedAt"):
        if col not in df.columns:
            df[col] = None
        # per value: MySQL hands back datetimes, SQLite dumps hand back strings
        df[col] = df[col].map(lambda v: pd.to_datetime(v, errors="coerce"))
    if "isValide" not in df.columns:
        df["isValide"] = False
    df = _safe_bool_col(df, "isValide")

    comments = []
    for row in df.to_dict("records"):
        comments.append(LegacyComment(
            ue_code=row["code"],
            body=row["body"],
            created_at=_to_datetime(row["createdAt"]),
            updated_at=_to_datetime(row["updatedAt"]),
            is_valid=bool(row["isValide"]),
        ))
    return comments


def load_users(source: LegacySource) -> list[LegacyUser]:
    """
    Load legacy accounts with their profile. Passwords are never read.

    Missing profile columns default to "" / False / private, so older dumps
    that lack them still load.
    """
    df = pd.DataFrame(source.query(USER_QUERY))
    df = _clean_text_cols(df, USER_TEXT_COLUMNS + list(USER_PROFILE_TEXT_COLUMNS))
    df = _clean_int_cols(df, ["studentId"])
    if "isStudent" not in df.columns:
        df["isStudent"] = True
    df = _safe_bool_col(df, "isStudent")
    for col in USER_PROFILE_FLAG_COLUMNS:
        if col not in df.columns:
            df[col] = False
        df = _safe_bool_col(df, col)
    for col in list(USER_PRIVACY_COLUMNS) + list(ADDRESS_PRIVACY_COLUMNS):
        df = _privacy_public_col(df, col)
    if "birthday" not in df.columns:
        df["birthday"] = None
    df["birthday"] = df["birthday"].map(lambda v: pd.to_datetime(v, errors="coerce"))
    df = df[df["login"] != ""]

    users = []
    for row in df.to_dict("records"):
        subscriptions = tuple(code.strip() for code in row["uvs"].split("|") if code.strip())
        users.append(LegacyUser(
            login=row["login"],
            student_id=int(row["studentId"]),
            first_name=row["firstName"],
            last_name=row["lastName"],
            is_student=bool(row["isStudent"]),
            mail=row["mail"],
            personal_mail=row["personnalMail"],
            subscriptions=subscriptions,
            birthday=_to_datetime(row["birthday"]),
            profile={
                **{target: row[col] for col, target in USER_PROFILE_TEXT_COLUMNS.items()},
                **{target: bool(row[col]) for col, target in USER_PROFILE_FLAG_COLUMNS.items()},
                **{target: bool(row[col]) for col, target in USER_PRIVACY_COLUMNS.items()},
            },
            address_visibility=tuple(bool(row[col]) for col in ADDRESS_PRIVACY_COLUMNS),
        ))
    return users
