"""
Target persistence: create-or-identify writes keyed by natural key.

Each entity kind maps to one table plus the columns forming its natural key.
`create_or_identify` looks the row up by that key and then inserts it, updates
the differing columns, or leaves it alone, reporting which happened.
"""

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    and_,
    create_engine,
    delete,
    insert,
    select,
    update,
)

from outcomes import MigrationOutcome

metadata = MetaData()

credit_categories = Table(
    "credit_categories", metadata,
    Column("code", String(16), primary_key=True),
    Column("name", String(255), nullable=False),
)

semesters = Table(
    "semesters", metadata,
    Column("code", String(8), primary_key=True),
    Column("start", DateTime, nullable=False),
    Column("end", DateTime, nullable=False),
)

ues = Table(
    "ues", metadata,
    Column("code", String(32), primary_key=True),
    Column("inscription_code", String(8), nullable=False, unique=True),
    Column("name", Text, nullable=False, default=""),
)

ue_variants = Table(
    "ue_variants", metadata,
    Column("code", String(64), primary_key=True),
    Column("ue_code", String(32), ForeignKey("ues.code"), nullable=False),
    Column("language", String(4), nullable=False),
    Column("location", String(4), nullable=False),
    Column("cm", Integer, nullable=False, default=0),
    Column("td", Integer, nullable=False, default=0),
    Column("tp", Integer, nullable=False, default=0),
    Column("the", Integer, nullable=False, default=0),
    Column("project", Integer, nullable=False, default=0),
    Column("internship", Integer, nullable=False, default=0),
    Column("credits", Integer, nullable=False, default=0),
    Column("category_code", String(16), ForeignKey("credit_categories.code"), nullable=False),
    Column("program", Text, nullable=False, default=""),
    Column("objectives", Text, nullable=False, default=""),
    Column("languages", Text, nullable=False, default=""),
    Column("minors", Text, nullable=False, default=""),
    Column("comment", Text, nullable=False, default=""),
)

ue_requirements = Table(
    "ue_requirements", metadata,
    Column("variant_code", String(64), ForeignKey("ue_variants.code"), primary_key=True),
    Column("requirement_code", String(64), ForeignKey("ue_variants.code"), primary_key=True),
)

ue_comments = Table(
    "ue_comments", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ue_code", String(32), ForeignKey("ues.code"), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("updated_at", DateTime, nullable=False),
    Column("body", Text, nullable=False, default=""),
    Column("is_anonymous", Boolean, nullable=False, default=True),
    Column("validated_at", DateTime, nullable=True),
    Column("semester_code", String(8), ForeignKey("semesters.code"), nullable=False),
    UniqueConstraint("ue_code", "created_at", name="uq_ue_comment_natural_key"),
)

branches = Table(
    "branches", metadata,
    Column("code", String(16), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
)

branch_options = Table(
    "branch_options", metadata,
    Column("code", String(16), primary_key=True),
    Column("branch_code", String(16), ForeignKey("branches.code"), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False, default=""),
)

users = Table(
    "users", metadata,
    Column("login", String(64), primary_key=True),
    Column("student_id", Integer, nullable=False, default=0),
    Column("first_name", String(255), nullable=False, default=""),
    Column("last_name", String(255), nullable=False, default=""),
    Column("user_type", String(16), nullable=False),
    Column("mail_utt", String(255), nullable=False, default=""),
    Column("mail_personal", String(255), nullable=False, default=""),
)

user_profiles = Table(
    "user_profiles", metadata,
    Column("login", String(64), ForeignKey("users.login"), primary_key=True),
    Column("birthday", DateTime, nullable=True),
    Column("nickname", String(255), nullable=False, default=""),
    Column("passions", Text, nullable=False, default=""),
    Column("website", String(255), nullable=False, default=""),
    Column("sex", String(16), nullable=False, default=""),
    Column("avatar", String(255), nullable=False, default=""),
    Column("nationality", String(255), nullable=False, default=""),
    Column("facebook", String(255), nullable=False, default=""),
    Column("twitter", String(255), nullable=False, default=""),
    Column("linkedin", String(255), nullable=False, default=""),
    Column("discord", String(255), nullable=False, default=""),
    Column("privacy_mail_utt", Boolean, nullable=False, default=True),
    Column("privacy_mail_personal", Boolean, nullable=False, default=False),
    Column("privacy_phone", Boolean, nullable=False, default=False),
    Column("privacy_birthday", Boolean, nullable=False, default=False),
    Column("privacy_birthday_only_age", Boolean, nullable=False, default=False),
    Column("privacy_sex", Boolean, nullable=False, default=False),
    Column("privacy_nationality", Boolean, nullable=False, default=False),
    Column("privacy_discord", Boolean, nullable=False, default=False),
    Column("privacy_address", String(16), nullable=False, default="ALL_PRIVATE"),
    Column("keep_account", Boolean, nullable=False, default=False),
    Column("delete_everything", Boolean, nullable=False, default=False),
    Column("want_daymail", Boolean, nullable=False, default=False),
    Column("want_day_notif", Boolean, nullable=False, default=False),
    Column("want_discord_utt", Boolean, nullable=False, default=False),
    Column("language", String(8), nullable=False, default=""),
    Column("street", Text, nullable=False, default=""),
    Column("postal_code", String(16), nullable=False, default=""),
    Column("city", String(255), nullable=False, default=""),
    Column("country", String(255), nullable=False, default=""),
)

ue_subscriptions = Table(
    "ue_subscriptions", metadata,
    Column("user_login", String(64), ForeignKey("users.login"), primary_key=True),
    Column("ue_code", String(32), ForeignKey("ues.code"), primary_key=True),
    Column("semester_code", String(8), ForeignKey("semesters.code"), primary_key=True),
)

# kind → (table, natural key columns)
ENTITY_KINDS = {
    "credit_category": (credit_categories, ("code",)),
    "semester": (semesters, ("code",)),
    "ue": (ues, ("code",)),
    "ue_variant": (ue_variants, ("code",)),
    "ue_comment": (ue_comments, ("ue_code", "created_at")),
    "branch": (branches, ("code",)),
    "branch_option": (branch_options, ("code", "branch_code")),
    "user": (users, ("login",)),
    "user_profile": (user_profiles, ("login",)),
    "ue_subscription": (ue_subscriptions, ("user_login", "ue_code", "semester_code")),
}


class TargetStore:
    """Create-or-identify access to the target database."""

    def __init__(self, engine):
        self.engine = engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def clear(self) -> None:
        """Delete every migrated row. Destructive; staging/test databases only."""
        with self.engine.begin() as conn:
            for table in reversed(metadata.sorted_tables):
                conn.execute(delete(table))

    @staticmethod
    def _entity(kind: str):
        if kind not in ENTITY_KINDS:
            raise KeyError(f"Unknown entity kind: {kind}")
        return ENTITY_KINDS[kind]

    def create_or_identify(self, kind: str, key: dict, payload: dict) -> tuple[dict, MigrationOutcome]:
        table, key_columns = self._entity(kind)
        missing = [col for col in key_columns if col not in key]
        if missing:
            raise KeyError(f"{kind}: natural key is missing {missing}")
        where = and_(*[table.c[col] == key[col] for col in key_columns])

        with self.engine.begin() as conn:
            existing = conn.execute(select(table).where(where)).mappings().first()
            if existing is None:
                conn.execute(insert(table).values(**key, **payload))
                return {**key, **payload}, MigrationOutcome.CREATED

            changed = {col: value for col, value in payload.items() if existing[col] != value}
            if not changed:
                return dict(existing), MigrationOutcome.UNCHANGED
            conn.execute(update(table).where(where).values(**changed))
            return {**dict(existing), **changed}, MigrationOutcome.UPDATED

    def update_references(self, variant_code: str, requirement_codes) -> int:
        """Attach requirement links to a variant. Returns how many links are new."""
        with self.engine.begin() as conn:
            existing = set(conn.execute(
                select(ue_requirements.c.requirement_code)
                .where(ue_requirements.c.variant_code == variant_code)
            ).scalars())
            new_codes = []
            for code in requirement_codes:
                if code not in existing and code not in new_codes:
                    new_codes.append(code)
            if new_codes:
                conn.execute(
                    insert(ue_requirements),
                    [{"variant_code": variant_code, "requirement_code": c} for c in new_codes],
                )
            return len(new_codes)

    def requirements_of(self, variant_code: str) -> set[str]:
        with self.engine.connect() as conn:
            return set(conn.execute(
                select(ue_requirements.c.requirement_code)
                .where(ue_requirements.c.variant_code == variant_code)
            ).scalars())

    def inscription_codes(self) -> dict[str, str]:
        """Stored inscription code per UE code."""
        with self.engine.connect() as conn:
            return dict(conn.execute(select(ues.c.code, ues.c.inscription_code)).all())

    def list_semesters(self) -> list[dict]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(semesters).order_by(semesters.c.start)).mappings().all()
        return [dict(row) for row in rows]

    def count(self, kind: str) -> int:
        table, _ = self._entity(kind)
        with self.engine.connect() as conn:
            return len(conn.execute(select(table)).all())

    def rows(self, kind: str) -> list[dict]:
        table, key_columns = self._entity(kind)
        order = [table.c[col] for col in key_columns]
        with self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(select(table).order_by(*order)).mappings()]


@contextmanager
def open_target_store(url: str):
    """Yield a TargetStore with its schema in place; the engine is always disposed."""
    engine = create_engine(url)
    try:
        store = TargetStore(engine)
        store.create_schema()
        print("[OK] Connected to target database")
        yield store
    finally:
        engine.dispose()
