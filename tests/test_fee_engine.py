"""
Fee engine: permit fee, airport tariff, extended-operations bands, late-payment interest, unified quote.
Run from project root: python -m pytest tests/test_fee_engine.py -v
"""
import unittest
from datetime import time
from decimal import Decimal

from domain.enums import (
    Airport,
    ApplicationType,
    Currency,
    ExtendedOperationsBand,
    FeeCategory,
    FeeSource,
    FlightOperationType,
    MtowTier,
)
from domain.exceptions import InvalidArgumentError
from domain.values import Money
from schemas.fees import TariffRequest, UnifiedFeeRequest
from services.fee_policy import PermitFeePolicy, extended_operations_band
from services.permit_fees import calculate_permit_fee
from services.revenue import calculate_unified_fees
from services.tariff import calculate_interest, calculate_tariff


def _base_tariff(**overrides):
    data = {
        "mtow_lbs": Decimal("50000"),
        "operation_type": FlightOperationType.GENERAL_AVIATION,
        "airport": Airport.TUPJ,
        "passenger_count": 0,
    }
    data.update(overrides)
    return TariffRequest(**data)


class TestPermitFee(unittest.TestCase):
    def test_one_time_fee(self):
        """150 + 100 x 10 + 50,000 x 0.02 = 2150 at 1.0x."""
        result = calculate_permit_fee(ApplicationType.ONE_TIME, 100, 50_000)
        self.assertEqual(result.base_fee, Decimal("150.00"))
        self.assertEqual(result.seat_fee, Decimal("1000.00"))
        self.assertEqual(result.weight_fee, Decimal("1000.00"))
        self.assertEqual(result.subtotal, Decimal("2150.00"))
        self.assertEqual(result.total_fee, Decimal("2150.00"))
        self.assertEqual(len(result.breakdown), 3)
        self.assertEqual(result.policy_source, "Default Policy")

    def test_blanket_surcharge(self):
        result = calculate_permit_fee(ApplicationType.BLANKET, 100, 50_000)
        self.assertEqual(result.total_fee, Decimal("5375.00"))
        adjustment = result.breakdown[-1]
        self.assertEqual(adjustment.description, "Blanket Permit Surcharge (2.5x)")
        self.assertEqual(adjustment.amount, Decimal("3225.00"))

    def test_emergency_discount(self):
        result = calculate_permit_fee(ApplicationType.EMERGENCY, 100, 50_000)
        self.assertEqual(result.total_fee, Decimal("1075.00"))
        self.assertEqual(result.breakdown[-1].description, "Emergency Discount (0.5x)")
        self.assertEqual(result.breakdown[-1].amount, Decimal("1075.00"))

    def test_zero_seats_and_weight_allowed(self):
        result = calculate_permit_fee(ApplicationType.ONE_TIME, 0, 0)
        self.assertEqual(result.total_fee, Decimal("150.00"))

    def test_negative_inputs_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_permit_fee(ApplicationType.ONE_TIME, -1, 1000)
        with self.assertRaises(InvalidArgumentError):
            calculate_permit_fee(ApplicationType.ONE_TIME, 10, -1)

    def test_custom_policy(self):
        """Tenant policy replaces the defaults and is named in the result."""
        policy = PermitFeePolicy(
            base_fee=Decimal("200"),
            per_seat_fee=Decimal("5"),
            per_kg_fee=Decimal("0.01"),
            currency=Currency.XCD,
            source="Tenant Configuration (ID: cfg-1, Modified: 2025-01-01)",
        )
        result = calculate_permit_fee(ApplicationType.ONE_TIME, 10, 10_000, policy)
        self.assertEqual(result.total_fee, Decimal("350.00"))
        self.assertEqual(result.currency, Currency.XCD)
        self.assertTrue(result.policy_source.startswith("Tenant Configuration"))

    def test_policy_rejects_non_positive_multiplier(self):
        with self.assertRaises(InvalidArgumentError):
            PermitFeePolicy(base_fee=1, per_seat_fee=1, per_kg_fee=1, blanket_multiplier=0)

    def test_deterministic(self):
        first = calculate_permit_fee(ApplicationType.BLANKET, 37, "12345.6")
        second = calculate_permit_fee(ApplicationType.BLANKET, 37, "12345.6")
        self.assertEqual(first, second)


class TestTariff(unittest.TestCase):
    def test_general_aviation_with_passengers(self):
        """50,000 lb GA at TUPJ, 10 departing pax: 500 + 10 + 150 + 50 + 70 = 780."""
        result = calculate_tariff(_base_tariff(passenger_count=10))
        self.assertEqual(result.mtow_tier, MtowTier.TIER2)
        self.assertEqual(result.landing_fee, Decimal("500.00"))
        self.assertEqual(result.navigation_fee, Decimal("10.00"))
        self.assertEqual(result.total_fee, Decimal("780.00"))
        categories = [item.category for item in result.breakdown]
        self.assertEqual(
            categories,
            [
                FeeCategory.LANDING,
                FeeCategory.NAVIGATION,
                FeeCategory.AIRPORT_DEVELOPMENT,
                FeeCategory.SECURITY,
                FeeCategory.HOLD_BAGGAGE_SCREENING,
            ],
        )
        self.assertTrue(all(item.source == FeeSource.AIRPORT for item in result.breakdown))

    def test_minimum_landing_fee(self):
        result = calculate_tariff(_base_tariff(mtow_lbs=1000, operation_type=FlightOperationType.LOCAL_SCHEDULED))
        self.assertEqual(result.landing_fee, Decimal("15.00"))
        self.assertEqual(result.mtow_tier, MtowTier.TIER1)

    def test_landing_rounds_up_to_started_thousand(self):
        """12,001 lb counts as 13 units at the Tier1 GA rate of 5.00."""
        result = calculate_tariff(_base_tariff(mtow_lbs=12_001))
        self.assertEqual(result.landing_fee, Decimal("65.00"))

    def test_exempt_operations_pay_no_landing_fee(self):
        for op in (FlightOperationType.EMERGENCY, FlightOperationType.MILITARY, FlightOperationType.GOVERNMENT):
            with self.subTest(op=op):
                result = calculate_tariff(_base_tariff(operation_type=op))
                self.assertEqual(result.landing_fee, Decimal("0.00"))
                self.assertEqual(result.breakdown[0].category, FeeCategory.LANDING)
                self.assertEqual(result.total_fee, Decimal("10.00"))

    def test_parking_blocks(self):
        """16 hours = 2 blocks x 20% x 500 landing = 200."""
        result = calculate_tariff(_base_tariff(parking_hours=16))
        self.assertEqual(result.total_fee, Decimal("710.00"))
        result = calculate_tariff(_base_tariff(parking_hours=9))
        self.assertEqual(result.total_fee, Decimal("710.00"))
        result = calculate_tariff(_base_tariff(parking_hours=0))
        self.assertEqual(result.total_fee, Decimal("510.00"))

    def test_add_ons(self):
        self.assertEqual(calculate_tariff(_base_tariff(requires_cat_vi_fire=True)).total_fee, Decimal("610.00"))
        self.assertEqual(
            calculate_tariff(_base_tariff(include_flight_plan_filing=True)).total_fee, Decimal("530.00")
        )
        self.assertEqual(calculate_tariff(_base_tariff(lighting_hours=2)).total_fee, Decimal("580.00"))
        self.assertEqual(calculate_tariff(_base_tariff(fuel_gallons=500)).total_fee, Decimal("610.00"))

    def test_passenger_group_by_airport_and_direction(self):
        cases = [
            (Airport.TUPJ, True, False, Decimal("270.00")),
            (Airport.TUPJ, False, False, Decimal("200.00")),
            (Airport.TUPW, True, False, Decimal("220.00")),
            (Airport.TUPY, True, False, Decimal("220.00")),
            (Airport.TUPJ, True, True, Decimal("170.00")),
        ]
        for airport, departing, interisland, expected in cases:
            with self.subTest(airport=airport, departing=departing, interisland=interisland):
                result = calculate_tariff(_base_tariff(
                    passenger_count=10, airport=airport, is_departing=departing, is_interisland=interisland
                ))
                self.assertEqual(result.total_fee - Decimal("510.00"), expected)

    def test_no_passengers_no_passenger_charges(self):
        result = calculate_tariff(_base_tariff(passenger_count=0))
        self.assertEqual(len(result.breakdown), 2)
        self.assertEqual(result.total_fee, Decimal("510.00"))

    def test_negative_inputs(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_tariff(_base_tariff(mtow_lbs=-1))
        with self.assertRaises(InvalidArgumentError):
            calculate_tariff(_base_tariff(fuel_gallons=-5))
        result = calculate_tariff(_base_tariff(passenger_count=-3, lighting_hours=-1, parking_hours=-8))
        self.assertEqual(result.total_fee, Decimal("510.00"))


class TestExtendedOperations(unittest.TestCase):
    def test_bands(self):
        cases = [
            (time(0, 0), ExtendedOperationsBand.OVERNIGHT, Decimal("3225.00")),
            (time(1, 30), ExtendedOperationsBand.OVERNIGHT, Decimal("3225.00")),
            (time(3, 59), ExtendedOperationsBand.OVERNIGHT, Decimal("3225.00")),
            (time(4, 0), ExtendedOperationsBand.EARLY, Decimal("975.00")),
            (time(5, 30), ExtendedOperationsBand.EARLY, Decimal("975.00")),
            (time(6, 0), ExtendedOperationsBand.STANDARD, Decimal("0.00")),
            (time(12, 0), ExtendedOperationsBand.STANDARD, Decimal("0.00")),
            (time(18, 0), ExtendedOperationsBand.STANDARD, Decimal("0.00")),
            (time(21, 59), ExtendedOperationsBand.STANDARD, Decimal("0.00")),
            (time(22, 0), ExtendedOperationsBand.LATE, Decimal("1650.00")),
            (time(23, 30), ExtendedOperationsBand.LATE, Decimal("1650.00")),
        ]
        for scheduled, band, fee in cases:
            with self.subTest(scheduled=scheduled):
                self.assertEqual(extended_operations_band(scheduled), band)
                result = calculate_tariff(_base_tariff(scheduled_time=scheduled))
                self.assertEqual(result.extended_operations_band, band)
                self.assertEqual(result.total_fee - Decimal("510.00"), fee)

    def test_standard_band_not_listed(self):
        result = calculate_tariff(_base_tariff(scheduled_time=time(12, 0)))
        self.assertNotIn(FeeCategory.EXTENDED_OPERATIONS, [i.category for i in result.breakdown])

    def test_no_time_no_band(self):
        result = calculate_tariff(_base_tariff())
        self.assertIsNone(result.extended_operations_band)


class TestInterest(unittest.TestCase):
    def test_grace_period(self):
        for days in (0, 25, 30):
            with self.subTest(days=days):
                result = calculate_interest(Money("1000"), days)
                self.assertEqual(result.interest, Decimal("0.00"))

    def test_pro_rated_periods(self):
        cases = [(45, "7.50", "0.5000"), (60, "15.00", "1.0000"), (90, "30.00", "2.0000")]
        for days, interest, periods in cases:
            with self.subTest(days=days):
                result = calculate_interest(Money("1000"), days)
                self.assertEqual(result.interest, Decimal(interest))
                self.assertEqual(result.periods, Decimal(periods))
                self.assertEqual(result.monthly_rate, Decimal("0.015"))

    def test_keeps_principal_currency(self):
        result = calculate_interest(Money("1000", Currency.XCD), 60)
        self.assertEqual(result.currency, Currency.XCD)

    def test_negative_days_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_interest(Money("1000"), -1)


class TestUnifiedFees(unittest.TestCase):
    def test_combines_permit_and_tariff(self):
        """22,679.6 kg converts to 49,999.90 lb: Tier2, 50 units at the GA rate."""
        request = UnifiedFeeRequest(
            application_type=ApplicationType.ONE_TIME,
            seat_count=100,
            mtow_kg=Decimal("22679.6"),
            operation_type=FlightOperationType.GENERAL_AVIATION,
            passenger_count=10,
        )
        result = calculate_unified_fees(request)
        self.assertEqual(result.mtow_lbs, Decimal("49999.90"))
        self.assertEqual(result.tariff.landing_fee, Decimal("500.00"))
        self.assertEqual(result.airport_total, Decimal("780.00"))
        self.assertEqual(result.fop_total, result.permit.total_fee)
        self.assertEqual(result.grand_total, result.fop_total + result.airport_total)
        sources = {item.source for item in result.breakdown}
        self.assertEqual(sources, {FeeSource.FOP, FeeSource.AIRPORT})
        self.assertEqual(len(result.breakdown), len(result.permit.breakdown) + len(result.tariff.breakdown))


if __name__ == "__main__":
    unittest.main()
