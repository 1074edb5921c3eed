"""
Airport-fee invoices: issue from a tariff quote, payments against the balance, overdue marking and monthly interest.
Run from project root: python -m pytest tests/test_invoices.py -v
"""
import unittest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from domain.enums import Airport, Currency, FeeCategory, FlightOperationType, InvoiceStatus, PaymentMethod
from domain.exceptions import (
    InvalidArgumentError,
    InvalidTransitionError,
    InvoiceNotPastDueError,
    PaymentExceedsBalanceError,
)
from domain.invoice import AirportFeeInvoice, InvoiceLineItem
from domain.values import Money
from schemas.fees import TariffRequest
from services.invoices import apply_late_payment_interest, invoice_from_tariff, process_overdue_invoices
from services.tariff import calculate_tariff

JAN_1 = date(2025, 1, 1)
NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


def _invoice():
    """50,000 lb GA at TUPJ with 10 departing pax: 780.00 over five lines, due 2025-01-31."""
    request = TariffRequest(
        mtow_lbs=Decimal("50000"),
        operation_type=FlightOperationType.GENERAL_AVIATION,
        airport=Airport.TUPJ,
        passenger_count=10,
    )
    return invoice_from_tariff(calculate_tariff(request), "operator-1", JAN_1)


def _pay(invoice, amount):
    return invoice.record_payment(Money(amount), PaymentMethod.BANK_TRANSFER, "finance@bvia.vg", NOW)


class TestInvoiceFromTariff(unittest.TestCase):
    def test_lines_follow_breakdown(self):
        with self.assertLogs("services.invoices", level="INFO"):
            invoice = _invoice()
        self.assertEqual(invoice.status, InvoiceStatus.PENDING)
        self.assertRegex(invoice.invoice_number, r"^BVIA-INV-20250101-[0-9A-F]{8}$")
        self.assertEqual(invoice.due_date, date(2025, 1, 31))
        self.assertEqual(len(invoice.line_items), 5)
        self.assertEqual(invoice.line_items[0].category, FeeCategory.LANDING)
        self.assertEqual(invoice.subtotal, Money("780.00"))
        self.assertTrue(invoice.total_interest.is_zero())
        self.assertEqual(invoice.balance_due, Money("780.00"))

    def test_create_validation(self):
        with self.assertRaises(InvalidArgumentError):
            AirportFeeInvoice.create("operator-1", [], JAN_1)
        with self.assertRaises(InvalidArgumentError):
            AirportFeeInvoice.create(" ", [InvoiceLineItem("Landing", Money("10"))], JAN_1)
        with self.assertRaises(InvalidArgumentError) as ctx:
            AirportFeeInvoice.create("operator-1", [InvoiceLineItem("Landing", Money("10", Currency.XCD))], JAN_1)
        self.assertEqual(ctx.exception.field, "currency")


class TestInvoicePayments(unittest.TestCase):
    def test_partial_then_full_payment(self):
        invoice = _invoice()
        _pay(invoice, "180.00")
        self.assertEqual(invoice.status, InvoiceStatus.PARTIALLY_PAID)
        self.assertEqual(invoice.amount_paid, Money("180.00"))
        self.assertEqual(invoice.balance_due, Money("600.00"))
        _pay(invoice, "600.00")
        self.assertEqual(invoice.status, InvoiceStatus.PAID)
        self.assertTrue(invoice.balance_due.is_zero())
        with self.assertRaises(InvalidTransitionError):
            _pay(invoice, "1.00")
        with self.assertRaises(InvalidTransitionError):
            invoice.cancel("finance@bvia.vg", "Issued in error", JAN_1)

    def test_payment_above_balance_rejected(self):
        invoice = _invoice()
        with self.assertRaises(PaymentExceedsBalanceError):
            _pay(invoice, "780.01")
        self.assertEqual(invoice.payments, [])
        self.assertEqual(invoice.status, InvoiceStatus.PENDING)

    def test_invalid_payments(self):
        invoice = _invoice()
        with self.assertRaises(InvalidArgumentError):
            _pay(invoice, "0")
        with self.assertRaises(InvalidArgumentError):
            invoice.record_payment(Money("10", Currency.XCD), PaymentMethod.CASH, "finance@bvia.vg", NOW)
        with self.assertRaises(InvalidArgumentError):
            invoice.record_payment(Money("10"), PaymentMethod.CASH, "", NOW)

    def test_cancelled_invoice_takes_no_payment(self):
        invoice = _invoice()
        invoice.cancel("finance@bvia.vg", "Flight did not operate", JAN_1)
        self.assertEqual(invoice.status, InvoiceStatus.CANCELLED)
        self.assertIn("Flight did not operate", invoice.notes)
        with self.assertRaises(InvalidTransitionError):
            _pay(invoice, "10.00")
        self.assertFalse(invoice.is_past_due(date(2025, 6, 1)))


class TestOverdueInterest(unittest.TestCase):
    def test_not_past_due(self):
        invoice = _invoice()
        self.assertIsNone(apply_late_payment_interest(invoice, invoice.due_date))
        self.assertEqual(invoice.status, InvoiceStatus.PENDING)
        with self.assertRaises(InvoiceNotPastDueError):
            invoice.mark_overdue(invoice.due_date)

    def test_marked_overdue_within_grace_period(self):
        invoice = _invoice()
        as_of = invoice.due_date + timedelta(days=20)
        self.assertIsNone(apply_late_payment_interest(invoice, as_of))
        self.assertEqual(invoice.status, InvoiceStatus.OVERDUE)
        self.assertEqual(invoice.marked_overdue_on, as_of)
        self.assertEqual(invoice.days_overdue(as_of), 20)
        self.assertTrue(invoice.total_interest.is_zero())

    def test_interest_added_once_per_month(self):
        invoice = _invoice()
        first = apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=60))
        # 780.00 x 1.5% x one period past grace
        self.assertEqual(first.amount, Money("11.70"))
        self.assertEqual(first.description, "Late Payment Interest (1.5%/month) - Month 2")
        self.assertEqual(first.category, FeeCategory.LATE_PAYMENT_INTEREST)
        self.assertTrue(first.is_interest)
        self.assertEqual(invoice.balance_due, Money("791.70"))

        self.assertIsNone(apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=60)))
        self.assertIsNone(apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=75)))

        second = apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=90))
        # 791.70 x 1.5% x 2 periods = 23.751
        self.assertEqual(second.amount, Money("23.75"))
        self.assertEqual(second.description, "Late Payment Interest (1.5%/month) - Month 3")
        self.assertEqual(invoice.total_interest, Money("35.45"))
        self.assertEqual(invoice.subtotal, Money("780.00"))
        self.assertEqual(invoice.total_amount, Money("815.45"))

    def test_partial_payment_keeps_invoice_overdue(self):
        invoice = _invoice()
        apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=10))
        _pay(invoice, "180.00")
        self.assertEqual(invoice.status, InvoiceStatus.OVERDUE)
        item = apply_late_payment_interest(invoice, invoice.due_date + timedelta(days=60))
        self.assertEqual(item.amount, Money("9.00"))

    def test_interest_only_on_overdue_invoice(self):
        invoice = _invoice()
        with self.assertRaises(InvalidTransitionError):
            invoice.add_interest_charge(Money("5.00"), "Late Payment Interest", JAN_1)

    def test_overdue_pass(self):
        late = _invoice()
        paid = _invoice()
        _pay(paid, "780.00")
        current = invoice_from_tariff(
            calculate_tariff(TariffRequest(mtow_lbs=50_000, operation_type=FlightOperationType.GENERAL_AVIATION)),
            "operator-2",
            date(2025, 3, 15),
        )
        as_of = date(2025, 4, 1)
        with self.assertLogs("services.invoices", level="INFO") as logs:
            charged = process_overdue_invoices([late, paid, current], as_of)
        self.assertEqual(charged, 1)
        self.assertEqual(late.status, InvoiceStatus.OVERDUE)
        self.assertEqual(paid.status, InvoiceStatus.PAID)
        self.assertEqual(paid.days_overdue(as_of), 0)
        self.assertEqual(current.status, InvoiceStatus.PENDING)
        self.assertTrue(any("1 invoice(s) charged interest" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
