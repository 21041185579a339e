# db.py
"""
Database module using SQLAlchemy (SQLite by default).
Persists the user's allow/deny lists; curated lists are never written here.
"""

import os
from datetime import datetime
from typing import Dict, List

from sqlalchemy import Column, DateTime, Integer, Text, UniqueConstraint, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

DB_FILE = os.getenv("URLSENTRY_DB", "urlsentry.db")
DATABASE_URL = os.getenv("URLSENTRY_DATABASE_URL", f"sqlite:///{DB_FILE}")

ALLOW = "allow"
DENY = "deny"
LIST_NAMES = (ALLOW, DENY)

Base = declarative_base()


class UserListEntry(Base):
    __tablename__ = "user_list_entries"
    __table_args__ = (UniqueConstraint("list_name", "domain", name="uq_list_domain"),)

    id = Column(Integer, primary_key=True, index=True)
    list_name = Column(Text, nullable=False, index=True)
    domain = Column(Text, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


def _engine_kwargs(database_url: str) -> dict:
    if not database_url.startswith("sqlite"):
        return {}
    kwargs = {"connect_args": {"check_same_thread": False}}
    # an in-memory database only survives on a single shared connection
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


class UserListDB:
    """Storage for the user lists. Rows are returned in insertion order."""

    def __init__(self, database_url: str = DATABASE_URL):
        self.database_url = database_url
        self.engine = create_engine(database_url, **_engine_kwargs(database_url))
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def load_lists(self) -> Dict[str, List[str]]:
        lists = {name: [] for name in LIST_NAMES}
        with self.SessionLocal() as session:
            rows = session.query(UserListEntry).order_by(UserListEntry.id).all()
        for row in rows:
            if row.list_name in lists:
                lists[row.list_name].append(row.domain)
        return lists

    def move_to(self, list_name: str, domain: str) -> None:
        """Put domain on list_name and off the other list, in one transaction."""
        other = DENY if list_name == ALLOW else ALLOW
        with self.SessionLocal() as session, session.begin():
            session.query(UserListEntry).filter_by(list_name=other, domain=domain).delete()
            exists = session.query(UserListEntry).filter_by(list_name=list_name, domain=domain).first()
            if not exists:
                session.add(UserListEntry(list_name=list_name, domain=domain))
