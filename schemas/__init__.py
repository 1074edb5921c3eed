from schemas.application import (
    ApplicationCreate,
    ApplicationUpdate,
    FlightDetailsSchema,
    MoneySchema,
    PaymentOutcome,
)
from schemas.fees import (
    FeeBreakdownItemSchema,
    FeeRateCreate,
    InterestRequest,
    InterestResult,
    PermitFeeRequest,
    PermitFeeResult,
    TariffRequest,
    TariffResult,
    UnifiedFeeRequest,
    UnifiedFeeResult,
)

__all__ = [
    "ApplicationCreate",
    "ApplicationUpdate",
    "FlightDetailsSchema",
    "MoneySchema",
    "PaymentOutcome",
    "FeeBreakdownItemSchema",
    "FeeRateCreate",
    "InterestRequest",
    "InterestResult",
    "PermitFeeRequest",
    "PermitFeeResult",
    "TariffRequest",
    "TariffResult",
    "UnifiedFeeRequest",
    "UnifiedFeeResult",
]
