# backend/clinassist/services/audit.py
"""
Audit trail for completed analyses.

Stores keep a bounded window of AuditSummary records (oldest evicted
first) and are safe to share between concurrent requests: writes and
evictions happen under one lock, reads copy a snapshot under the same lock.
"""
import datetime
import logging
import threading
import uuid
from collections import deque
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from clinassist.db import AuditRecord, DEFAULT_DATABASE_URL, build_session_factory
from clinassist.exceptions import AuditStoreError
from clinassist.schemas import AuditEntry, AuditSummary

log = logging.getLogger("audit")

DEFAULT_RETENTION = 50
DEFAULT_PAGE_SIZE = 10
REDACTION_MASK = "***"


def redact_patient(name: str) -> str:
    """First character plus a mask. Names of 2 characters or fewer pass through."""
    name = name or ""
    if len(name) > 2:
        return name[:1] + REDACTION_MASK
    return name


def new_audit_id() -> str:
    return f"audit-{uuid.uuid4().hex}"


def utc_timestamp() -> str:
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _summary_from_entry(entry: AuditEntry) -> AuditSummary:
    return AuditSummary(
        audit_id=entry.audit_id or new_audit_id(),
        patient_ref=entry.patient_ref,
        complaint=entry.complaint,
        risk_level=entry.risk_level,
        risk_score=entry.risk_score,
        user_id=entry.user_id,
        at=entry.at or utc_timestamp(),
    )


class AuditStore:
    """Interface for audit backends."""

    backend = "base"

    def __init__(self, retention: int = DEFAULT_RETENTION, page_size: int = DEFAULT_PAGE_SIZE):
        if retention <= 0:
            raise ValueError("retention must be positive")
        self.retention = retention
        self.page_size = min(page_size, retention)

    def clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None or limit <= 0 or limit > self.retention:
            return self.page_size
        return limit

    def insert(self, entry: AuditEntry) -> AuditSummary:
        raise NotImplementedError

    def latest(self, limit: Optional[int] = None) -> List[AuditSummary]:
        """Most recent first, never more than the retention window."""
        raise NotImplementedError


class MemoryAuditStore(AuditStore):
    """Process-local ring buffer; use a fresh instance per test."""

    backend = "memory"

    def __init__(self, retention: int = DEFAULT_RETENTION, page_size: int = DEFAULT_PAGE_SIZE):
        super().__init__(retention, page_size)
        self._entries = deque(maxlen=self.retention)
        self._lock = threading.Lock()

    def insert(self, entry: AuditEntry) -> AuditSummary:
        summary = _summary_from_entry(entry)
        with self._lock:
            self._entries.append(summary)
        return summary

    def latest(self, limit: Optional[int] = None) -> List[AuditSummary]:
        limit = self.clamp_limit(limit)
        with self._lock:
            snapshot = list(self._entries)
        snapshot.reverse()
        return snapshot[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SQLAuditStore(AuditStore):
    """SQLAlchemy-backed store (SQLite by default) that prunes rows past the window."""

    backend = "sql"

    def __init__(
        self,
        database_url: str = DEFAULT_DATABASE_URL,
        retention: int = DEFAULT_RETENTION,
        page_size: int = DEFAULT_PAGE_SIZE,
        session_factory=None,
    ):
        super().__init__(retention, page_size)
        self.SessionLocal = session_factory or build_session_factory(database_url)
        self._lock = threading.Lock()

    def insert(self, entry: AuditEntry) -> AuditSummary:
        summary = _summary_from_entry(entry)
        with self._lock:
            db = self.SessionLocal()
            try:
                db.add(AuditRecord(
                    audit_id=summary.audit_id,
                    patient_ref=summary.patient_ref,
                    complaint=summary.complaint,
                    risk_level=summary.risk_level.value,
                    risk_score=summary.risk_score,
                    user_id=summary.user_id,
                    at_utc=summary.at,
                ))
                db.flush()
                keep = (
                    db.query(AuditRecord.seq)
                    .order_by(AuditRecord.seq.desc())
                    .limit(self.retention)
                    .subquery()
                )
                evicted = (
                    db.query(AuditRecord)
                    .filter(AuditRecord.seq.notin_(select(keep.c.seq)))
                    .delete(synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise AuditStoreError(f"Failed to save audit {summary.audit_id}: {e}", backend=self.backend) from e
            finally:
                db.close()
        if evicted:
            log.debug("Evicted %d audit row(s) past retention %d", evicted, self.retention)
        return summary

    def latest(self, limit: Optional[int] = None) -> List[AuditSummary]:
        limit = self.clamp_limit(limit)
        with self._lock:
            db = self.SessionLocal()
            try:
                rows = db.query(AuditRecord).order_by(AuditRecord.seq.desc()).limit(limit).all()
                return [
                    AuditSummary(
                        audit_id=r.audit_id,
                        patient_ref=r.patient_ref,
                        complaint=r.complaint,
                        risk_level=r.risk_level,
                        risk_score=r.risk_score,
                        user_id=r.user_id,
                        at=r.at_utc,
                    )
                    for r in rows
                ]
            except SQLAlchemyError as e:
                raise AuditStoreError(f"Failed to query audits: {e}", backend=self.backend) from e
            finally:
                db.close()


def build_audit_store(settings) -> AuditStore:
    if settings.audit_backend == "sql":
        return SQLAuditStore(
            database_url=settings.database_url,
            retention=settings.audit_retention,
            page_size=settings.audit_page_size,
        )
    return MemoryAuditStore(retention=settings.audit_retention, page_size=settings.audit_page_size)
