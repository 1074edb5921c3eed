"""
Effective-dated tariff table: lookups, precedence, supersede/deactivate, and the table-backed policy.
Run from project root: python -m pytest tests/test_rate_table.py -v
"""
import unittest
from datetime import date
from decimal import Decimal

from domain.enums import Airport, Currency, ExtendedOperationsBand, FeeCategory, FlightOperationType, MtowTier
from domain.exceptions import FeeRateNotFoundError, InvalidArgumentError
from schemas.fees import TariffRequest
from services.fee_policy import DefaultTariffPolicy, RateTableTariffPolicy
from services.rate_table import FeeRate, FeeRateTable
from services.tariff import calculate_tariff

JAN_1 = date(2025, 1, 1)


def _rate(category=FeeCategory.LANDING, rate="10.00", effective_from=JAN_1, **kwargs):
    return FeeRate(category=category, rate=Decimal(rate), effective_from=effective_from, **kwargs)


def _base_table():
    return FeeRateTable([
        _rate(FeeCategory.NAVIGATION, "9.00"),
        _rate(FeeCategory.NAVIGATION, "12.00", mtow_tier=MtowTier.TIER2),
        _rate(FeeCategory.AIRPORT_DEVELOPMENT, "14.00"),
        _rate(FeeCategory.AIRPORT_DEVELOPMENT, "16.00", airport=Airport.TUPJ),
    ])


class TestFeeRate(unittest.TestCase):
    def test_validation(self):
        with self.assertRaises(InvalidArgumentError):
            _rate(rate="-1")
        with self.assertRaises(InvalidArgumentError):
            _rate(minimum_fee=Decimal("-5"))
        with self.assertRaises(InvalidArgumentError):
            _rate(effective_to=date(2024, 12, 31))

    def test_effective_window_is_inclusive(self):
        rate = _rate(effective_to=date(2025, 6, 30))
        self.assertFalse(rate.is_effective_on(date(2024, 12, 31)))
        self.assertTrue(rate.is_effective_on(JAN_1))
        self.assertTrue(rate.is_effective_on(date(2025, 6, 30)))
        self.assertFalse(rate.is_effective_on(date(2025, 7, 1)))

    def test_deactivate_twice_rejected(self):
        rate = _rate()
        rate.deactivate()
        self.assertFalse(rate.is_effective_on(JAN_1))
        with self.assertRaises(InvalidArgumentError):
            rate.deactivate()


class TestFindApplicable(unittest.TestCase):
    def test_tier_specific_preferred(self):
        table = _base_table()
        self.assertEqual(table.find_applicable(FeeCategory.NAVIGATION, JAN_1, mtow_tier=MtowTier.TIER2).rate, Decimal("12.00"))
        self.assertEqual(table.find_applicable(FeeCategory.NAVIGATION, JAN_1, mtow_tier=MtowTier.TIER3).rate, Decimal("9.00"))

    def test_airport_specific_preferred(self):
        table = _base_table()
        self.assertEqual(
            table.find_applicable(FeeCategory.AIRPORT_DEVELOPMENT, JAN_1, airport=Airport.TUPJ).rate, Decimal("16.00")
        )
        self.assertEqual(
            table.find_applicable(FeeCategory.AIRPORT_DEVELOPMENT, JAN_1, airport=Airport.TUPW).rate, Decimal("14.00")
        )

    def test_unrequested_discriminator_does_not_match(self):
        """A tier-specific entry is not returned when no tier is asked for."""
        table = FeeRateTable([_rate(FeeCategory.NAVIGATION, "12.00", mtow_tier=MtowTier.TIER2)])
        self.assertIsNone(table.find_applicable(FeeCategory.NAVIGATION, JAN_1))

    def test_operation_type_outranks_tier(self):
        table = FeeRateTable([
            _rate(rate="3.00", mtow_tier=MtowTier.TIER1),
            _rate(rate="4.00", operation_type=FlightOperationType.CHARTER),
        ])
        found = table.find_applicable(
            FeeCategory.LANDING, JAN_1, operation_type=FlightOperationType.CHARTER, mtow_tier=MtowTier.TIER1
        )
        self.assertEqual(found.rate, Decimal("4.00"))

    def test_latest_effective_from_wins(self):
        table = FeeRateTable([_rate(rate="10.00"), _rate(rate="11.00", effective_from=date(2025, 3, 1))])
        self.assertEqual(table.find_applicable(FeeCategory.LANDING, date(2025, 2, 1)).rate, Decimal("10.00"))
        self.assertEqual(table.find_applicable(FeeCategory.LANDING, date(2025, 3, 1)).rate, Decimal("11.00"))

    def test_nothing_before_first_rate(self):
        self.assertIsNone(_base_table().find_applicable(FeeCategory.NAVIGATION, date(2024, 1, 1)))

    def test_time_band(self):
        table = FeeRateTable([
            _rate(FeeCategory.EXTENDED_OPERATIONS, "900.00", time_band=ExtendedOperationsBand.EARLY),
        ])
        self.assertEqual(
            table.find_applicable(FeeCategory.EXTENDED_OPERATIONS, JAN_1, time_band=ExtendedOperationsBand.EARLY).rate,
            Decimal("900.00"),
        )
        self.assertIsNone(
            table.find_applicable(FeeCategory.EXTENDED_OPERATIONS, JAN_1, time_band=ExtendedOperationsBand.LATE)
        )


class TestSupersede(unittest.TestCase):
    def test_closes_prior_rate_day_before(self):
        prior = _rate(rate="10.00")
        table = FeeRateTable([prior])
        table.supersede(prior.id, _rate(rate="12.00", effective_from=date(2025, 7, 1)))
        self.assertEqual(prior.effective_to, date(2025, 6, 30))
        self.assertTrue(prior.is_active)
        self.assertEqual(table.find_applicable(FeeCategory.LANDING, date(2025, 6, 30)).rate, Decimal("10.00"))
        self.assertEqual(table.find_applicable(FeeCategory.LANDING, date(2025, 7, 1)).rate, Decimal("12.00"))
        self.assertEqual(len(table), 2)

    def test_requires_same_category_and_later_start(self):
        prior = _rate()
        table = FeeRateTable([prior])
        with self.assertRaises(InvalidArgumentError):
            table.supersede(prior.id, _rate(FeeCategory.NAVIGATION, effective_from=date(2025, 2, 1)))
        with self.assertRaises(InvalidArgumentError):
            table.supersede(prior.id, _rate(effective_from=JAN_1))
        self.assertIsNone(prior.effective_to)

    def test_unknown_rate(self):
        with self.assertRaises(FeeRateNotFoundError):
            FeeRateTable().supersede("missing", _rate())

    def test_deactivate_removes_from_lookup(self):
        rate = _rate()
        table = FeeRateTable([rate])
        table.deactivate(rate.id)
        self.assertIsNone(table.find_applicable(FeeCategory.LANDING, JAN_1))


class TestRateTableTariffPolicy(unittest.TestCase):
    def test_empty_table_matches_default_policy(self):
        request = TariffRequest(
            mtow_lbs=Decimal("50000"),
            operation_type=FlightOperationType.GENERAL_AVIATION,
            passenger_count=10,
            parking_hours=16,
        )
        from_table = calculate_tariff(request, RateTableTariffPolicy(FeeRateTable(), JAN_1))
        default = calculate_tariff(request, DefaultTariffPolicy())
        self.assertEqual(from_table.total_fee, default.total_fee)
        self.assertEqual(from_table.policy_source, "Default Policy")

    def test_table_rates_override_defaults(self):
        table = FeeRateTable([
            _rate(
                FeeCategory.LANDING, "11.00",
                operation_type=FlightOperationType.GENERAL_AVIATION,
                mtow_tier=MtowTier.TIER2,
                minimum_fee=Decimal("25.00"),
            ),
            _rate(FeeCategory.SECURITY, "6.00"),
        ])
        policy = RateTableTariffPolicy(table, JAN_1, tenant_id="tenant-1")
        result = calculate_tariff(
            TariffRequest(mtow_lbs=50_000, operation_type=FlightOperationType.GENERAL_AVIATION, passenger_count=10),
            policy,
        )
        # 550 landing + 10 navigation + 150 development + 60 security + 70 screening
        self.assertEqual(result.landing_fee, Decimal("550.00"))
        self.assertEqual(result.total_fee, Decimal("840.00"))
        self.assertEqual(result.policy_source, "Rate Table (Tenant: tenant-1, Effective: 2025-01-01, Rates: 2)")
        self.assertEqual(policy.minimum_landing_fee(FlightOperationType.GENERAL_AVIATION, MtowTier.TIER2), Decimal("25.00"))

    def test_interisland_development_rate(self):
        table = FeeRateTable([
            _rate(FeeCategory.AIRPORT_DEVELOPMENT, "16.00", airport=Airport.TUPJ),
            _rate(FeeCategory.AIRPORT_DEVELOPMENT, "4.00", operation_type=FlightOperationType.INTERISLAND),
        ])
        policy = RateTableTariffPolicy(table, JAN_1)
        self.assertEqual(policy.airport_development_fee(Airport.TUPJ, False), Decimal("16.00"))
        self.assertEqual(policy.airport_development_fee(Airport.TUPJ, True), Decimal("4.00"))

    def test_interisland_falls_back_without_interisland_rate(self):
        table = FeeRateTable([_rate(FeeCategory.AIRPORT_DEVELOPMENT, "16.00", airport=Airport.TUPJ)])
        policy = RateTableTariffPolicy(table, JAN_1)
        self.assertEqual(policy.airport_development_fee(Airport.TUPJ, True), Decimal("5.00"))

    def test_rate_in_other_currency_rejected(self):
        """An XCD table entry is not priced as if it were USD."""
        table = FeeRateTable([_rate(FeeCategory.SECURITY, "13.50", currency=Currency.XCD)])
        policy = RateTableTariffPolicy(table, JAN_1)
        with self.assertRaises(InvalidArgumentError) as ctx:
            policy.security_charge()
        self.assertEqual(ctx.exception.field, "currency")
        with self.assertRaises(InvalidArgumentError):
            calculate_tariff(
                TariffRequest(mtow_lbs=50_000, operation_type=FlightOperationType.GENERAL_AVIATION, passenger_count=10),
                policy,
            )

    def test_as_of_date_selects_rate(self):
        prior = _rate(FeeCategory.FLIGHT_PLAN_FILING, "20.00")
        table = FeeRateTable([prior])
        table.supersede(prior.id, _rate(FeeCategory.FLIGHT_PLAN_FILING, "25.00", effective_from=date(2025, 7, 1)))
        self.assertEqual(RateTableTariffPolicy(table, date(2025, 6, 1)).flight_plan_filing_fee(), Decimal("20.00"))
        self.assertEqual(RateTableTariffPolicy(table, date(2025, 7, 1)).flight_plan_filing_fee(), Decimal("25.00"))


if __name__ == "__main__":
    unittest.main()
