"""Permit application domain: aggregate, child records, value objects, events and errors."""
from domain.application import Application, FeeOverride, FlagRecord
from domain.document import Document
from domain.payment import Payment
from domain.values import FlightDetails, Money, Weight, mtow_tier_for_pounds
from domain.waiver import Waiver

__all__ = [
    "Application",
    "Document",
    "FeeOverride",
    "FlagRecord",
    "FlightDetails",
    "Money",
    "Payment",
    "Waiver",
    "Weight",
    "mtow_tier_for_pounds",
]
