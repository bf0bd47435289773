# backend/clinassist/db.py
import datetime

from sqlalchemy import Column, DateTime, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///./audit_history.db"

Base = declarative_base()


class AuditRecord(Base):
    __tablename__ = "audits"

    # insertion order; timestamps can tie under concurrent writers
    seq = Column(Integer, primary_key=True, autoincrement=True)
    audit_id = Column(String, unique=True, index=True, nullable=False)
    patient_ref = Column(String)
    complaint = Column(String)
    risk_level = Column(String)
    risk_score = Column(Integer)
    user_id = Column(String, nullable=True)
    at_utc = Column(String)
    created_at = Column(DateTime, default=lambda: datetime.datetime.now(datetime.timezone.utc))


def build_session_factory(database_url: str = DEFAULT_DATABASE_URL):
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # one shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)
