"""
Database Module

SQLAlchemy ORM model and store for analysis results.
One record per (user, url); saving again replaces the previous analysis.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, Column, Integer, String, Text, DateTime, JSON, UniqueConstraint, Index
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from demystifier.config import settings
from demystifier.schemas import AnalysisResult

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AnalysisRecord(Base):
    """A stored analysis of one URL for one user."""
    __tablename__ = 'analyses'

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False)
    summary = Column(Text, nullable=False)
    critical_points = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint('user_id', 'url', name='uq_analysis_user_url'),
        Index('idx_analyses_user_id', 'user_id'),
    )

    def to_result(self) -> AnalysisResult:
        return AnalysisResult(summary=self.summary, critical_points=self.critical_points or [])


class AnalysisStore:
    """Insert-or-replace store for analysis results."""

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        """
        Initialize the store.

        Args:
            url: SQLAlchemy URL (defaults to DATABASE_URL / POSTGRES_*)
            echo: Log emitted SQL
        """
        url = url or settings.sqlalchemy_url
        engine_kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(pool_size=10, max_overflow=20, pool_recycle=3600)
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    def init_db(self):
        """Create tables if missing."""
        Base.metadata.create_all(self.engine)
        logger.info("Database schema initialized")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Scoped session: commit on success, rollback on error, always close."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def upsert(self, user_id: str, url: str, result: AnalysisResult) -> AnalysisRecord:
        """Insert or replace the analysis of url for user_id."""
        payload = result.to_dict()
        try:
            record = self._save(user_id, url, payload)
        except IntegrityError:
            # Another writer inserted the same (user_id, url) first
            logger.warning(f"Concurrent insert for user {user_id} at {url}, updating instead")
            record = self._save(user_id, url, payload)

        logger.info(f"Analysis saved/updated for user {user_id} at {url}")
        return record

    def _find(self, session: Session, user_id: str, url: str) -> Optional[AnalysisRecord]:
        return session.query(AnalysisRecord).filter_by(user_id=user_id, url=url).first()

    def _save(self, user_id: str, url: str, payload: dict) -> AnalysisRecord:
        with self.session() as session:
            record = self._find(session, user_id, url)
            if record:
                record.summary = payload["summary"]
                record.critical_points = payload["critical_points"]
            else:
                record = AnalysisRecord(
                    user_id=user_id,
                    url=url,
                    summary=payload["summary"],
                    critical_points=payload["critical_points"],
                )
                session.add(record)
        return record

    def get(self, user_id: str, url: str) -> Optional[AnalysisRecord]:
        with self.session() as session:
            return self._find(session, user_id, url)

    def list_for_user(self, user_id: str) -> List[AnalysisRecord]:
        """All analyses for a user, newest first."""
        with self.session() as session:
            records = (
                session.query(AnalysisRecord)
                .filter_by(user_id=user_id)
                .order_by(AnalysisRecord.created_at.desc(), AnalysisRecord.id.desc())
                .all()
            )
        logger.info(f"Found {len(records)} analyses for user {user_id}")
        return records

    def close(self):
        """Close database connections."""
        self.engine.dispose()
