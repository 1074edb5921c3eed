"""
Value objects: Money arithmetic and rounding, Weight conversion, MTOW tiers, FlightDetails validation.
Run from project root: python -m pytest tests/test_values.py -v
"""
import unittest
from datetime import date
from decimal import Decimal

from domain.enums import Currency, FlightPurpose, MtowTier
from domain.exceptions import InvalidArgumentError
from domain.values import FlightDetails, Money, Weight, mtow_tier_for_pounds


def _base_flight(**overrides):
    data = {
        "purpose": FlightPurpose.CHARTER,
        "arrival_airport": "tupj",
        "departure_airport": " tncm ",
        "estimated_flight_date": date(2025, 2, 1),
        "number_of_passengers": 10,
    }
    data.update(overrides)
    return FlightDetails(**data)


class TestMoney(unittest.TestCase):
    def test_rounds_half_even_to_cents(self):
        """0.125 rounds to 0.12 and 0.135 to 0.14 (banker's rounding)."""
        self.assertEqual(Money("0.125").amount, Decimal("0.12"))
        self.assertEqual(Money("0.135").amount, Decimal("0.14"))

    def test_defaults_to_usd(self):
        self.assertEqual(Money(10).currency, Currency.USD)

    def test_negative_amount_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            Money("-0.01")

    def test_addition_and_multiplication(self):
        total = Money("150") + Money("25.50")
        self.assertEqual(total.amount, Decimal("175.50"))
        self.assertEqual((total * Decimal("2")).amount, Decimal("351.00"))
        self.assertEqual((Decimal("0.5") * total).amount, Decimal("87.75"))

    def test_subtraction_below_zero_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            Money("10") - Money("10.01")

    def test_mixed_currencies_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            Money("10", Currency.USD) + Money("10", Currency.XCD)

    def test_negative_factor_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            Money("10").multiply(-1)

    def test_equal_values_compare_equal(self):
        self.assertEqual(Money("10.00"), Money(10))
        self.assertTrue(Money.zero().is_zero())
        self.assertEqual(str(Money("5")), "5.00 USD")


class TestWeight(unittest.TestCase):
    def test_kilograms_to_pounds(self):
        self.assertEqual(Weight.kilograms(1000).in_pounds, Decimal("2204.62"))

    def test_pounds_stay_pounds(self):
        self.assertEqual(Weight.pounds(12500).in_pounds, Decimal("12500.00"))

    def test_negative_weight_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            Weight.kilograms(-1)


class TestMtowTier(unittest.TestCase):
    def test_tier_boundaries(self):
        """Upper bounds are inclusive: 12,500 / 75,000 / 100,000 lb."""
        cases = [
            (0, MtowTier.TIER1),
            (12_500, MtowTier.TIER1),
            (12_501, MtowTier.TIER2),
            (75_000, MtowTier.TIER2),
            (75_001, MtowTier.TIER3),
            (100_000, MtowTier.TIER3),
            (100_001, MtowTier.TIER4),
        ]
        for weight, tier in cases:
            with self.subTest(weight=weight):
                self.assertEqual(mtow_tier_for_pounds(weight), tier)

    def test_negative_weight_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            mtow_tier_for_pounds(-1)


class TestFlightDetails(unittest.TestCase):
    def test_airports_normalised(self):
        flight = _base_flight()
        self.assertEqual(flight.arrival_airport, "TUPJ")
        self.assertEqual(flight.departure_airport, "TNCM")

    def test_other_purpose_requires_description(self):
        with self.assertRaises(InvalidArgumentError) as ctx:
            _base_flight(purpose=FlightPurpose.OTHER)
        self.assertEqual(ctx.exception.field, "purpose_description")
        flight = _base_flight(purpose=FlightPurpose.OTHER, purpose_description="Ferry flight")
        self.assertEqual(flight.purpose_description, "Ferry flight")

    def test_empty_airport_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            _base_flight(arrival_airport="  ")

    def test_negative_passengers_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            _base_flight(number_of_passengers=-1)


if __name__ == "__main__":
    unittest.main()
