"""
Airport-fee invoice: tariff line items, payments recorded against the balance due,
and late-payment interest lines once the invoice is overdue.

Totals are derived from the line items and payments, so they never drift:
    invoice = AirportFeeInvoice.create("operator-1", [InvoiceLineItem("Landing", Money("550"))], date(2025, 1, 1))
    invoice.record_payment(Money("200"), PaymentMethod.BANK_TRANSFER, "finance@bvia.vg", now)
    invoice.balance_due  # Money("350.00")
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from domain.enums import Currency, FeeCategory, InvoiceStatus, PaymentMethod
from domain.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    InvoiceNotPastDueError,
    PaymentExceedsBalanceError,
)
from domain.values import Money, require_text

INVOICE_DUE_DAYS = 30

PAYABLE_STATUSES = (InvoiceStatus.PENDING, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)
SETTLED_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


def generate_invoice_number(invoice_date: date) -> str:
    return f"BVIA-INV-{invoice_date:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


@dataclass(frozen=True)
class InvoiceLineItem:
    description: str
    amount: Money
    category: Optional[FeeCategory] = None
    is_interest: bool = False
    charged_on: Optional[date] = None


@dataclass(frozen=True)
class InvoicePayment:
    id: str
    amount: Money
    method: PaymentMethod
    recorded_by: str
    recorded_at: datetime
    transaction_reference: Optional[str] = None


@dataclass(eq=False)
class AirportFeeInvoice:
    id: str
    invoice_number: str
    operator_id: str
    invoice_date: date
    due_date: date
    currency: Currency = Currency.USD
    status: InvoiceStatus = InvoiceStatus.PENDING
    line_items: list[InvoiceLineItem] = field(default_factory=list)
    payments: list[InvoicePayment] = field(default_factory=list)
    marked_overdue_on: Optional[date] = None
    notes: Optional[str] = None

    @classmethod
    def create(
        cls,
        operator_id: str,
        line_items: Iterable[InvoiceLineItem],
        invoice_date: date,
        currency: Currency = Currency.USD,
    ) -> "AirportFeeInvoice":
        """Issue a Pending invoice due INVOICE_DUE_DAYS after the invoice date."""
        operator_id = require_text(operator_id, "operator_id", "Operator ID")
        items = list(line_items)
        if not items:
            raise InvalidArgumentError("An invoice needs at least one line item", "line_items")
        currency = Currency(currency)
        for item in items:
            if item.amount.currency != currency:
                raise InvalidArgumentError(
                    f"Line item '{item.description}' is in {item.amount.currency.value}, invoice is in {currency.value}",
                    "currency",
                )
        return cls(
            id=str(uuid.uuid4()),
            invoice_number=generate_invoice_number(invoice_date),
            operator_id=operator_id,
            invoice_date=invoice_date,
            due_date=invoice_date + timedelta(days=INVOICE_DUE_DAYS),
            currency=currency,
            line_items=items,
        )

    def _sum(self, amounts: Iterable[Money]) -> Money:
        total = Money.zero(self.currency)
        for amount in amounts:
            total = total + amount
        return total

    @property
    def subtotal(self) -> Money:
        return self._sum(item.amount for item in self.line_items if not item.is_interest)

    @property
    def total_interest(self) -> Money:
        return self._sum(item.amount for item in self.line_items if item.is_interest)

    @property
    def total_amount(self) -> Money:
        return self.subtotal + self.total_interest

    @property
    def amount_paid(self) -> Money:
        return self._sum(payment.amount for payment in self.payments)

    @property
    def balance_due(self) -> Money:
        return self.total_amount - self.amount_paid

    def is_past_due(self, as_of: date) -> bool:
        return as_of > self.due_date and self.status not in SETTLED_STATUSES

    def days_overdue(self, as_of: date) -> int:
        if not self.is_past_due(as_of):
            return 0
        return (as_of - self.due_date).days

    def last_interest_charged_on(self) -> Optional[date]:
        dates = [item.charged_on for item in self.line_items if item.is_interest and item.charged_on]
        return max(dates) if dates else None

    def _require_status(self, operation: str, *allowed: InvoiceStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(operation, allowed, self.status)

    def record_payment(
        self,
        amount: Money,
        method: PaymentMethod,
        recorded_by: str,
        now: datetime,
        transaction_reference: Optional[str] = None,
    ) -> InvoicePayment:
        """
        Apply a payment to the balance. A zero balance settles the invoice; a partial
        payment leaves an overdue invoice overdue.
        """
        self._require_status("record invoice payment", *PAYABLE_STATUSES)
        recorded_by = require_text(recorded_by, "recorded_by", "Recorded by")
        if amount.is_zero():
            raise InvalidArgumentError("Payment amount must be greater than zero", "amount")
        if amount.currency != self.currency:
            raise InvalidArgumentError(
                f"Payment is in {amount.currency.value}, invoice is in {self.currency.value}", "currency"
            )
        balance = self.balance_due
        if amount.amount > balance.amount:
            raise PaymentExceedsBalanceError(amount, balance)
        payment = InvoicePayment(
            id=str(uuid.uuid4()),
            amount=amount,
            method=PaymentMethod(method),
            recorded_by=recorded_by,
            recorded_at=now,
            transaction_reference=transaction_reference,
        )
        self.payments.append(payment)
        if self.balance_due.is_zero():
            self.status = InvoiceStatus.PAID
        elif self.status != InvoiceStatus.OVERDUE:
            self.status = InvoiceStatus.PARTIALLY_PAID
        return payment

    def mark_overdue(self, as_of: date) -> None:
        self._require_status("mark invoice overdue", InvoiceStatus.PENDING, InvoiceStatus.PARTIALLY_PAID)
        if as_of <= self.due_date:
            raise InvoiceNotPastDueError(self.invoice_number, self.due_date)
        self.status = InvoiceStatus.OVERDUE
        self.marked_overdue_on = as_of

    def add_interest_charge(self, amount: Money, description: str, as_of: date) -> InvoiceLineItem:
        self._require_status("add interest charge", InvoiceStatus.OVERDUE)
        if amount.is_zero():
            raise InvalidArgumentError("Interest charge must be greater than zero", "amount")
        if amount.currency != self.currency:
            raise InvalidArgumentError(
                f"Interest is in {amount.currency.value}, invoice is in {self.currency.value}", "currency"
            )
        item = InvoiceLineItem(
            description=require_text(description, "description", "Description"),
            amount=amount,
            category=FeeCategory.LATE_PAYMENT_INTEREST,
            is_interest=True,
            charged_on=as_of,
        )
        self.line_items.append(item)
        return item

    def cancel(self, cancelled_by: str, reason: str, as_of: date) -> None:
        self._require_status("cancel invoice", *PAYABLE_STATUSES)
        cancelled_by = require_text(cancelled_by, "cancelled_by", "Cancelled by")
        self.status = InvoiceStatus.CANCELLED
        note = f"Cancelled by {cancelled_by} on {as_of.isoformat()}: {reason}"
        self.notes = f"{self.notes}\n{note}" if self.notes else note
