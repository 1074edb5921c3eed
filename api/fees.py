from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_tenant_id
from database import get_db
from domain.values import Money
from schemas.fees import InterestRequest, PermitFeeRequest, TariffRequest, UnifiedFeeRequest
from services.applications import permit_fee_policy_for
from services.fee_policy import RateTableTariffPolicy
from services.permit_fees import quote_permit_fee
from services.repositories import FeeRateRepository
from services.revenue import calculate_unified_fees
from services.tariff import calculate_interest, calculate_tariff
from utils.case import dict_keys_to_camel

router = APIRouter(prefix="/api/fees", tags=["fees"])


def _to_response(result: BaseModel) -> dict:
    return dict_keys_to_camel(result.model_dump(mode="json"))


async def _tariff_policy(db: AsyncSession, tenant_id: str, as_of: Optional[date]) -> RateTableTariffPolicy:
    """Tenant rate table as of the given date; missing rates fall back to the published tariff."""
    table = await FeeRateRepository(db).load_table(tenant_id)
    return RateTableTariffPolicy(table, as_of or date.today(), tenant_id=tenant_id)


@router.post("/permit")
async def permit_fee(
    body: PermitFeeRequest, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    return _to_response(quote_permit_fee(body, await permit_fee_policy_for(db, tenant_id)))


@router.post("/tariff")
async def tariff(body: TariffRequest, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)):
    return _to_response(calculate_tariff(body, await _tariff_policy(db, tenant_id, body.as_of)))


@router.post("/interest")
async def interest(body: InterestRequest, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)):
    policy = await _tariff_policy(db, tenant_id, None)
    return _to_response(calculate_interest(Money(body.principal, body.currency), body.days_overdue, policy))


@router.post("/unified")
async def unified(
    body: UnifiedFeeRequest, tenant_id: str = Depends(get_tenant_id), db: AsyncSession = Depends(get_db)
):
    result = calculate_unified_fees(
        body,
        permit_policy=await permit_fee_policy_for(db, tenant_id),
        tariff_policy=await _tariff_policy(db, tenant_id, None),
    )
    return _to_response(result)
