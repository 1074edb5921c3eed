from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Integer, String, func

from database import Base


class PermitApplicationRecord(Base):
    __tablename__ = "permit_applications"

    id = Column(String(64), primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    application_number = Column(String(32), unique=True, nullable=False, index=True)
    application_type = Column(String(16), nullable=False)
    status = Column(String(32), nullable=False, default="Draft", index=True)
    operator_id = Column(String(64), nullable=False, index=True)
    aircraft_id = Column(String(64), nullable=False)
    requested_start_date = Column(Date, nullable=False)
    is_flagged = Column(Boolean, nullable=False, default=False)
    # Full aggregate (documents, payment, waivers) as produced by domain.snapshot
    snapshot = Column(JSON, nullable=False)
    # Optimistic concurrency stamp, checked on every save
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
