"""
Airport-fee invoicing: issue an invoice from a tariff quote, and the overdue pass that
marks late invoices and adds at most one late-payment interest line per 30 days.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from domain.enums import InvoiceStatus
from domain.invoice import AirportFeeInvoice, InvoiceLineItem
from domain.values import Money
from schemas.fees import TariffResult
from services.fee_policy import TariffPolicy
from services.tariff import INTEREST_GRACE_DAYS, calculate_interest

logger = logging.getLogger(__name__)

INTEREST_CHARGE_INTERVAL_DAYS = 30


def invoice_from_tariff(
    result: TariffResult, operator_id: str, invoice_date: Optional[date] = None
) -> AirportFeeInvoice:
    """One line item per breakdown entry; the invoice subtotal equals the tariff total."""
    items = [
        InvoiceLineItem(description=item.description, amount=Money(item.amount, result.currency), category=item.category)
        for item in result.breakdown
    ]
    invoice = AirportFeeInvoice.create(operator_id, items, invoice_date or date.today(), result.currency)
    logger.info(
        "Issued invoice %s to operator %s for %s, due %s",
        invoice.invoice_number, operator_id, invoice.total_amount, invoice.due_date.isoformat(),
    )
    return invoice


def apply_late_payment_interest(
    invoice: AirportFeeInvoice, as_of: date, policy: Optional[TariffPolicy] = None
) -> Optional[InvoiceLineItem]:
    """
    Mark a past-due invoice Overdue, then charge interest on the balance due once it is
    more than INTEREST_GRACE_DAYS late. Returns the new interest line, or None.
    """
    if invoice.status in (InvoiceStatus.PENDING, InvoiceStatus.PARTIALLY_PAID) and invoice.is_past_due(as_of):
        invoice.mark_overdue(as_of)
        logger.info("Invoice %s marked overdue (balance %s)", invoice.invoice_number, invoice.balance_due)
    if invoice.status != InvoiceStatus.OVERDUE:
        return None
    days = invoice.days_overdue(as_of)
    if days <= INTEREST_GRACE_DAYS:
        return None
    last_charged = invoice.last_interest_charged_on()
    if last_charged is not None and (as_of - last_charged).days < INTEREST_CHARGE_INTERVAL_DAYS:
        return None
    interest = calculate_interest(invoice.balance_due, days, policy)
    if interest.interest <= 0:
        return None
    month = (days - INTEREST_GRACE_DAYS) // INTEREST_CHARGE_INTERVAL_DAYS + 1
    description = f"Late Payment Interest ({interest.monthly_rate * 100:.1f}%/month) - Month {month}"
    item = invoice.add_interest_charge(Money(interest.interest, interest.currency), description, as_of)
    logger.info("Charged %s interest on invoice %s (%d days overdue)", item.amount, invoice.invoice_number, days)
    return item


def process_overdue_invoices(
    invoices: Iterable[AirportFeeInvoice], as_of: date, policy: Optional[TariffPolicy] = None
) -> int:
    """Run the overdue pass over a batch; returns how many invoices were charged interest."""
    charged = 0
    for invoice in invoices:
        if apply_late_payment_interest(invoice, as_of, policy) is not None:
            charged += 1
    logger.info("Overdue pass for %s complete: %d invoice(s) charged interest", as_of.isoformat(), charged)
    return charged
