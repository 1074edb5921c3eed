"""
Shared enums for the permit domain.
Values are the wire/storage representation; keep them stable.
"""
from enum import Enum


class ApplicationType(str, Enum):
    ONE_TIME = "OneTime"
    BLANKET = "Blanket"
    EMERGENCY = "Emergency"


class ApplicationStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    UNDER_REVIEW = "UnderReview"
    PENDING_DOCUMENTS = "PendingDocuments"
    PENDING_PAYMENT = "PendingPayment"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.CANCELLED}
)


class FlightPurpose(str, Enum):
    CHARTER = "Charter"
    CARGO = "Cargo"
    TECHNICAL_LANDING = "TechnicalLanding"
    MEDEVAC = "Medevac"
    PRIVATE = "Private"
    OTHER = "Other"


class DocumentType(str, Enum):
    AIRWORTHINESS = "Airworthiness"
    REGISTRATION = "Registration"
    OPERATOR_CERTIFICATE = "OperatorCertificate"
    INSURANCE = "Insurance"
    NOISE_CERTIFICATE = "NoiseCertificate"
    CREW_LICENSES = "CrewLicenses"
    OTHER = "Other"


# Order matters: missing types are reported in this order.
REQUIRED_DOCUMENT_TYPES = (
    DocumentType.AIRWORTHINESS,
    DocumentType.REGISTRATION,
    DocumentType.OPERATOR_CERTIFICATE,
    DocumentType.INSURANCE,
)


class DocumentStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CreditCard"
    BANK_TRANSFER = "BankTransfer"
    CASH = "Cash"
    STRIPE = "Stripe"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"
    CANCELLED = "Cancelled"


OPEN_PAYMENT_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})


class InvoiceStatus(str, Enum):
    PENDING = "Pending"
    PARTIALLY_PAID = "PartiallyPaid"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class WaiverType(str, Enum):
    EMERGENCY = "Emergency"
    HUMANITARIAN = "Humanitarian"
    GOVERNMENT = "Government"
    DIPLOMATIC = "Diplomatic"
    MILITARY = "Military"
    OTHER = "Other"


class WaiverStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Currency(str, Enum):
    USD = "USD"
    XCD = "XCD"


class FlightOperationType(str, Enum):
    LOCAL_SCHEDULED = "LocalScheduled"
    GENERAL_AVIATION = "GeneralAviation"
    CHARTER = "Charter"
    INTERISLAND = "Interisland"
    EMERGENCY = "Emergency"
    MILITARY = "Military"
    GOVERNMENT = "Government"


EXEMPT_OPERATION_TYPES = frozenset(
    {FlightOperationType.EMERGENCY, FlightOperationType.MILITARY, FlightOperationType.GOVERNMENT}
)


class Airport(str, Enum):
    """Served airports. TUPJ is the primary (highest development fee)."""

    TUPJ = "TUPJ"  # Terrance B. Lettsome, Beef Island
    TUPW = "TUPW"  # Virgin Gorda
    TUPY = "TUPY"  # Auguste George, Anegada


class MtowTier(str, Enum):
    TIER1 = "Tier1"  # 0 - 12,500 lb
    TIER2 = "Tier2"  # 12,501 - 75,000 lb
    TIER3 = "Tier3"  # 75,001 - 100,000 lb
    TIER4 = "Tier4"  # over 100,000 lb


class FeeCategory(str, Enum):
    LANDING = "Landing"
    NAVIGATION = "Navigation"
    PARKING = "Parking"
    AIRPORT_DEVELOPMENT = "AirportDevelopment"
    SECURITY = "Security"
    HOLD_BAGGAGE_SCREENING = "HoldBaggageScreening"
    EXTENDED_OPERATIONS = "ExtendedOperations"
    LIGHTING = "Lighting"
    FLIGHT_PLAN_FILING = "FlightPlanFiling"
    CAT_VI_FIRE_UPGRADE = "CatViFireUpgrade"
    FUEL_FLOW = "FuelFlow"
    LATE_PAYMENT_INTEREST = "LatePaymentInterest"


class ExtendedOperationsBand(str, Enum):
    STANDARD = "Standard"  # 06:00 - 21:59, no fee
    EARLY = "Early"  # 04:00 - 05:59
    LATE = "Late"  # 22:00 - 23:59
    OVERNIGHT = "Overnight"  # 00:00 - 03:59


class FeeSource(str, Enum):
    FOP = "FOP"
    AIRPORT = "AIRPORT"
