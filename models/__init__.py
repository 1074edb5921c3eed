from models.application import PermitApplicationRecord
from models.fee_configuration import FeeConfigurationRecord
from models.fee_rate import FeeRateRecord

__all__ = [
    "FeeConfigurationRecord",
    "FeeRateRecord",
    "PermitApplicationRecord",
]
