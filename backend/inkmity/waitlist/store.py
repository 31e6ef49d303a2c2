"""Waitlist persistence.

The engine is created on first use rather than at import so the serverless
deployment pays the connection cost only on requests that need it. Cold
concurrent requests race to initialize; the lock makes that happen once.
"""

import logging
import secrets
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import Column, DateTime, Integer, String, create_engine, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..core.config import settings

logger = logging.getLogger(__name__)

WaitlistBase = declarative_base()

JOIN_ATTEMPTS = 3


class WaitlistEntry(WaitlistBase):
    __tablename__ = "waitlist_entries"

    id         = Column(Integer, primary_key=True, index=True)
    name       = Column(String(120), nullable=True)
    email      = Column(String, unique=True, index=True, nullable=False)
    ref_code   = Column(String(16), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class WaitlistStore:
    def __init__(self, url: str) -> None:
        self.url = url
        self._lock = threading.Lock()
        self._sessionmaker: Optional[sessionmaker] = None
        self.init_count = 0

    def _ensure_ready(self) -> sessionmaker:
        if self._sessionmaker is not None:
            return self._sessionmaker
        with self._lock:
            if self._sessionmaker is None:
                kwargs = {"pool_pre_ping": True}
                if self.url.startswith("sqlite"):
                    kwargs["connect_args"] = {"check_same_thread": False}
                    if ":memory:" in self.url:
                        kwargs["poolclass"] = StaticPool
                engine = create_engine(self.url, **kwargs)
                WaitlistBase.metadata.create_all(engine)
                self._sessionmaker = sessionmaker(bind=engine, autoflush=False)
                self.init_count += 1
                logger.info("Waitlist store initialized")
        return self._sessionmaker

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self._ensure_ready()()
        try:
            yield db
        finally:
            db.close()

    def count(self) -> int:
        with self.session() as db:
            return db.query(func.count(WaitlistEntry.id)).scalar() or 0

    def join(self, email: str, name: Optional[str]) -> tuple[WaitlistEntry, bool, int, int]:
        """Add ``email`` if new. Returns ``(entry, created, position, total)``.

        A concurrent insert of the same email loses on the unique index and is
        reported as an existing signup.
        """
        with self.session() as db:
            for attempt in range(JOIN_ATTEMPTS):
                entry = db.query(WaitlistEntry).filter(WaitlistEntry.email == email).first()
                created = entry is None
                if created:
                    entry = WaitlistEntry(email=email, name=name, ref_code=secrets.token_hex(4))
                    db.add(entry)
                elif name:
                    entry.name = name
                try:
                    db.commit()
                    break
                except IntegrityError:
                    db.rollback()
                    if attempt == JOIN_ATTEMPTS - 1:
                        raise
                    logger.info("Waitlist insert for %s collided, retrying", email)
            db.refresh(entry)
            position = db.query(func.count(WaitlistEntry.id)).filter(WaitlistEntry.id <= entry.id).scalar()
            total = db.query(func.count(WaitlistEntry.id)).scalar()
            db.expunge(entry)
            return entry, created, int(position or 0), int(total or 0)


store = WaitlistStore(settings.WAITLIST_DATABASE_URL)


def get_store() -> WaitlistStore:
    return store
