"""
Persistence for the Application aggregate and the tariff reference data.

Applications are stored as one JSON snapshot per row plus a few indexed columns.
save() is an optimistic update: UPDATE ... WHERE id = :id AND version = :expected.
No matching row means another writer got there first and ConcurrencyConflictError is raised.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.application import Application
from domain.enums import Airport, ApplicationStatus, Currency, ExtendedOperationsBand, FeeCategory, FlightOperationType, MtowTier
from domain.exceptions import ApplicationNotFoundError, ConcurrencyConflictError, FeeRateNotFoundError
from domain.snapshot import from_snapshot, to_snapshot
from models import FeeConfigurationRecord, FeeRateRecord, PermitApplicationRecord
from services.rate_table import FeeRate, FeeRateTable

logger = logging.getLogger(__name__)


class ApplicationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _load_record(self, tenant_id: str, application_id: str) -> PermitApplicationRecord:
        # save() writes with a Core UPDATE, so identity-mapped rows must be refreshed
        result = await self.session.execute(
            select(PermitApplicationRecord)
            .where(
                PermitApplicationRecord.id == application_id,
                PermitApplicationRecord.tenant_id == tenant_id,
            )
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise ApplicationNotFoundError(application_id)
        return record

    @staticmethod
    def _to_aggregate(record: PermitApplicationRecord) -> Application:
        app = from_snapshot(record.snapshot)
        app.version = record.version
        return app

    async def get(self, tenant_id: str, application_id: str) -> Application:
        return self._to_aggregate(await self._load_record(tenant_id, application_id))

    async def list(
        self,
        tenant_id: str,
        status: Optional[ApplicationStatus] = None,
        flagged: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Application]:
        stmt = select(PermitApplicationRecord).where(PermitApplicationRecord.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(PermitApplicationRecord.status == ApplicationStatus(status).value)
        if flagged is not None:
            stmt = stmt.where(PermitApplicationRecord.is_flagged == flagged)
        stmt = (
            stmt.order_by(PermitApplicationRecord.updated_at.desc())
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_aggregate(r) for r in result.scalars().all()]

    def _columns(self, app: Application, version: int) -> dict:
        snapshot = to_snapshot(app)
        snapshot["version"] = version
        return {
            "status": app.status.value,
            "is_flagged": app.is_flagged,
            "snapshot": snapshot,
            "version": version,
            "updated_at": app.updated_at,
        }

    async def add(self, app: Application) -> Application:
        record = PermitApplicationRecord(
            id=app.id,
            tenant_id=app.tenant_id,
            application_number=app.application_number,
            application_type=app.application_type.value,
            operator_id=app.operator_id,
            aircraft_id=app.aircraft_id,
            requested_start_date=app.requested_start_date,
            created_at=app.created_at,
            **self._columns(app, 1),
        )
        self.session.add(record)
        await self.session.flush()
        app.version = 1
        return app

    async def save(self, app: Application) -> Application:
        expected = app.version
        new_version = expected + 1
        columns = self._columns(app, new_version)
        columns["requested_start_date"] = app.requested_start_date
        result = await self.session.execute(
            update(PermitApplicationRecord)
            .where(
                PermitApplicationRecord.id == app.id,
                PermitApplicationRecord.tenant_id == app.tenant_id,
                PermitApplicationRecord.version == expected,
            )
            .values(**columns)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning("Version conflict saving application %s (expected %s)", app.id, expected)
            raise ConcurrencyConflictError(app.id, expected)
        app.version = new_version
        return app


def _enum_or_none(enum_cls, value):
    return enum_cls(value) if value else None


def record_to_rate(record: FeeRateRecord) -> FeeRate:
    return FeeRate(
        id=record.id,
        tenant_id=record.tenant_id,
        category=FeeCategory(record.category),
        operation_type=_enum_or_none(FlightOperationType, record.operation_type),
        airport=_enum_or_none(Airport, record.airport),
        mtow_tier=_enum_or_none(MtowTier, record.mtow_tier),
        time_band=_enum_or_none(ExtendedOperationsBand, record.time_band),
        rate=record.rate,
        currency=Currency(record.currency),
        is_per_unit=record.is_per_unit,
        unit_description=record.unit_description,
        minimum_fee=record.minimum_fee,
        effective_from=record.effective_from,
        effective_to=record.effective_to,
        is_active=record.is_active,
        description=record.description,
    )


def _value(enum_value):
    return enum_value.value if enum_value is not None else None


class FeeRateRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_record(self, tenant_id: str, rate_id: str) -> FeeRateRecord:
        result = await self.session.execute(
            select(FeeRateRecord).where(FeeRateRecord.id == rate_id, FeeRateRecord.tenant_id == tenant_id)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise FeeRateNotFoundError(rate_id)
        return record

    async def list(self, tenant_id: str, include_inactive: bool = False) -> list[FeeRate]:
        stmt = select(FeeRateRecord).where(FeeRateRecord.tenant_id == tenant_id)
        if not include_inactive:
            stmt = stmt.where(FeeRateRecord.is_active.is_(True))
        stmt = stmt.order_by(FeeRateRecord.category, FeeRateRecord.effective_from)
        result = await self.session.execute(stmt)
        return [record_to_rate(r) for r in result.scalars().all()]

    async def list_active(self, tenant_id: str) -> list[FeeRate]:
        return await self.list(tenant_id)

    async def load_table(self, tenant_id: str) -> FeeRateTable:
        return FeeRateTable(await self.list_active(tenant_id))

    async def add(self, tenant_id: str, rate: FeeRate) -> FeeRate:
        rate.tenant_id = tenant_id
        rate.id = rate.id or str(uuid.uuid4())
        self.session.add(FeeRateRecord(
            id=rate.id,
            tenant_id=tenant_id,
            category=rate.category.value,
            operation_type=_value(rate.operation_type),
            airport=_value(rate.airport),
            mtow_tier=_value(rate.mtow_tier),
            time_band=_value(rate.time_band),
            rate=rate.rate,
            currency=rate.currency.value,
            is_per_unit=rate.is_per_unit,
            unit_description=rate.unit_description,
            minimum_fee=rate.minimum_fee,
            effective_from=rate.effective_from,
            effective_to=rate.effective_to,
            is_active=rate.is_active,
            description=rate.description,
        ))
        await self.session.flush()
        return rate

    async def deactivate(self, tenant_id: str, rate_id: str, effective_to: Optional[date] = None) -> FeeRate:
        record = await self._get_record(tenant_id, rate_id)
        rate = record_to_rate(record)
        rate.deactivate(effective_to)
        record.is_active = rate.is_active
        record.effective_to = rate.effective_to
        await self.session.flush()
        return rate

    async def supersede(self, tenant_id: str, rate_id: str, new_rate: FeeRate) -> FeeRate:
        record = await self._get_record(tenant_id, rate_id)
        table = FeeRateTable([record_to_rate(record)])
        table.supersede(rate_id, new_rate)
        record.effective_to = table.get(rate_id).effective_to
        return await self.add(tenant_id, new_rate)


class FeeConfigurationRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, tenant_id: str) -> Optional[FeeConfigurationRecord]:
        result = await self.session.execute(
            select(FeeConfigurationRecord)
            .where(FeeConfigurationRecord.tenant_id == tenant_id, FeeConfigurationRecord.is_active.is_(True))
            .order_by(FeeConfigurationRecord.updated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
