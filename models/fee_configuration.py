from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text, func

from database import Base


class FeeConfigurationRecord(Base):
    """Per-tenant permit fee parameters. Tenants without a row use the settings defaults."""

    __tablename__ = "fee_configurations"

    id = Column(String(64), primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    base_fee = Column(Numeric(12, 2), nullable=False)
    per_seat_fee = Column(Numeric(12, 2), nullable=False)
    per_kg_fee = Column(Numeric(12, 4), nullable=False)
    one_time_multiplier = Column(Numeric(6, 3), nullable=False, default=1)
    blanket_multiplier = Column(Numeric(6, 3), nullable=False, default=2.5)
    emergency_multiplier = Column(Numeric(6, 3), nullable=False, default=0.5)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)
    modified_by = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
