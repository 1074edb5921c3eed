from sqlalchemy import Boolean, Column, Date, DateTime, Numeric, String, Text, func

from database import Base


class FeeRateRecord(Base):
    __tablename__ = "fee_rates"

    id = Column(String(64), primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    category = Column(String(32), nullable=False, index=True)
    # Optional discriminators; NULL means the rate applies to any value
    operation_type = Column(String(32), nullable=True)
    airport = Column(String(8), nullable=True)
    mtow_tier = Column(String(8), nullable=True)
    time_band = Column(String(16), nullable=True)
    rate = Column(Numeric(12, 4), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    is_per_unit = Column(Boolean, nullable=False, default=False)
    unit_description = Column(String(128), nullable=True)
    minimum_fee = Column(Numeric(12, 2), nullable=True)
    effective_from = Column(Date, nullable=False)
    effective_to = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
