"""
Unit Tests for audit stores: redaction, retention and concurrent writers.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from clinassist.config import Settings
from clinassist.exceptions import AuditStoreError
from clinassist.schemas import AuditEntry, RiskLevel
from clinassist.services.audit import (
    MemoryAuditStore,
    SQLAuditStore,
    build_audit_store,
    redact_patient,
)


def _entry(i: int) -> AuditEntry:
    return AuditEntry(
        audit_id=f"audit-{i}",
        patient_ref="P***",
        complaint="ED",
        risk_level=RiskLevel.LOW,
        risk_score=i,
    )


@pytest.mark.parametrize("name,expected", [
    ("Juan Dela Cruz", "J***"),
    ("Ann", "A***"),
    ("Al", "Al"),
    ("J", "J"),
    ("", ""),
])
def test_redact_patient(name, expected):
    assert redact_patient(name) == expected


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryAuditStore(retention=5, page_size=3)
    return SQLAuditStore(database_url="sqlite://", retention=5, page_size=3)


class TestAuditStore:

    def test_insert_fills_id_and_timestamp(self, store):
        summary = store.insert(AuditEntry(
            patient_ref="J***", complaint="ED", risk_level=RiskLevel.HIGH, risk_score=9, user_id="dr-1",
        ))
        assert summary.audit_id.startswith("audit-")
        assert summary.at.endswith("Z")
        assert store.latest(1)[0] == summary

    def test_latest_is_most_recent_first(self, store):
        for i in range(4):
            store.insert(_entry(i))
        assert [s.audit_id for s in store.latest(4)] == ["audit-3", "audit-2", "audit-1", "audit-0"]

    def test_retention_evicts_oldest(self, store):
        for i in range(12):
            store.insert(_entry(i))
        ids = [s.audit_id for s in store.latest(5)]
        assert ids == ["audit-11", "audit-10", "audit-9", "audit-8", "audit-7"]

    @pytest.mark.parametrize("limit", [0, -1, 6, 1000, None])
    def test_out_of_range_limit_uses_page_size(self, store, limit):
        for i in range(5):
            store.insert(_entry(i))
        assert len(store.latest(limit)) == 3

    def test_snapshot_is_a_copy(self, store):
        store.insert(_entry(1))
        snapshot = store.latest(5)
        store.insert(_entry(2))
        assert len(snapshot) == 1


def test_concurrent_writers_keep_exact_window():
    store = MemoryAuditStore(retention=50, page_size=10)
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: store.insert(_entry(i)), range(400)))
    assert len(store) == 50
    ids = [s.audit_id for s in store.latest(50)]
    assert len(set(ids)) == 50


def test_sql_concurrent_writers_keep_exact_window(tmp_path):
    store = SQLAuditStore(database_url=f"sqlite:///{tmp_path / 'audit.db'}", retention=10, page_size=5)
    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda i: store.insert(_entry(i)), range(40)))
    ids = [s.audit_id for s in store.latest(10)]
    assert len(ids) == 10
    assert len(set(ids)) == 10


def test_sql_duplicate_id_raises_store_error():
    store = SQLAuditStore(database_url="sqlite://", retention=5)
    store.insert(_entry(1))
    with pytest.raises(AuditStoreError) as exc_info:
        store.insert(_entry(1))
    assert exc_info.value.to_dict()["error"] == "audit_store_error"


def test_build_audit_store_from_settings(tmp_path):
    memory = build_audit_store(Settings(audit_backend="memory", audit_retention=7))
    assert isinstance(memory, MemoryAuditStore)
    assert memory.retention == 7

    sql = build_audit_store(Settings(audit_backend="sql", database_url=f"sqlite:///{tmp_path / 'a.db'}"))
    assert isinstance(sql, SQLAuditStore)


def test_retention_must_be_positive():
    with pytest.raises(ValueError):
        MemoryAuditStore(retention=0)
