"""Tests for money arithmetic, formatting and settings rules."""

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace, UnionType
from typing import get_args

from hypothesis import given, settings, strategies as st

from livestock_ops.calculators.currency import (
    CurrencyFormat,
    Money,
    calculate_percentage,
    divide,
    format_compact_currency,
    format_currency,
    get_currency_preset,
    multiply,
    parse_currency,
    round_currency,
    sum_amounts,
    to_db_string,
    to_decimal,
)
from livestock_ops.calculators.formatting import (
    convert_temperature,
    format_area,
    format_date,
    format_date_time,
    format_temperature,
    format_time,
    format_weight,
    to_celsius,
    to_metric_area,
    to_metric_weight,
)
from livestock_ops.calculators.settings_rules import (
    build_settings_summary,
    merge_notification_settings,
    should_trigger_low_stock_alert,
    should_trigger_mortality_alert,
    validate_currency_change,
    validate_partial_settings,
    validate_setting_data,
)

EUR = get_currency_preset("EUR").to_format()
JPY = get_currency_preset("JPY").to_format()


class TestMoneyArithmetic:
    """Test Decimal helpers."""

    def test_to_decimal(self):
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("") == Decimal("0")
        assert to_decimal(0.1) == Decimal("0.1")

    def test_round_half_up(self):
        assert round_currency("2.345") == Decimal("2.35")
        assert to_db_string(3) == "3.00"

    def test_sum_avoids_float_noise(self):
        assert sum_amounts(0.1, 0.2, None) == Decimal("0.3")

    def test_divide_by_zero(self):
        assert divide(10, 0) is None
        assert divide(10, 4) == Decimal("2.5")

    def test_percentage(self):
        assert calculate_percentage(25, 200) == 12.5
        assert calculate_percentage(5, 0) == 0.0

    def test_multiply_mixed_inputs(self):
        assert multiply("4.50", 80) == Decimal("360.00")
        assert multiply(0.1, 3) == Decimal("0.3")
        assert multiply(None, 5) == Decimal("0")

    def test_money_accepts_every_input_type(self):
        assert isinstance(Money, UnionType)
        assert set(get_args(Money)) == {Decimal, int, float, str, type(None)}
        assert {format_currency(v) for v in (Decimal("12.5"), 12.5, "12.50")} == {"$12.50"}
        assert format_currency(None) == "$0.00"


class TestFormatCurrency:
    """Test user-configurable formatting."""

    def test_default_format(self):
        assert format_currency(1500000) == "$1,500,000.00"

    def test_negative(self):
        assert format_currency(Decimal("-1234.5")) == "-$1,234.50"

    def test_symbol_after_with_european_separators(self):
        assert format_currency(Decimal("1234.5"), EUR) == "1.234,50 €"

    def test_zero_decimals(self):
        assert format_currency(Decimal("1234.5"), JPY) == "¥1,235"

    def test_custom_settings_object(self):
        custom = CurrencyFormat(currency_symbol="KSh", thousand_separator=" ")
        assert format_currency(12345, custom) == "KSh12 345.00"

    def test_compact(self):
        assert format_compact_currency(1500) == "$1.5K"
        assert format_compact_currency(2_000_000) == "$2M"
        assert format_compact_currency(-2500) == "-$2.5K"
        assert format_compact_currency(999) == "$999.00"

    def test_unknown_preset(self):
        assert get_currency_preset("XYZ") is None


class TestParseCurrency:
    """Test parsing formatted amounts."""

    def test_common_symbols(self):
        assert parse_currency("$1,234.56") == Decimal("1234.56")
        assert parse_currency("₦ 50") == Decimal("50")

    def test_with_settings(self):
        assert parse_currency("1.234,50 €", EUR) == Decimal("1234.50")

    def test_invalid(self):
        assert parse_currency("abc") is None
        assert parse_currency("-5") is None
        assert parse_currency("NaN") is None

    @given(amount=st.decimals(min_value=0, max_value=10**9, places=2))
    @settings(max_examples=100)
    def test_parses_its_own_output(self, amount: Decimal):
        assert parse_currency(format_currency(amount)) == amount


class TestFormatting:
    """Test date, time and unit formatting."""

    def test_dates(self):
        value = date(2024, 3, 4)
        assert format_date(value) == "03/04/2024"
        assert format_date(value, "DD/MM/YYYY") == "04/03/2024"
        assert format_date(value, "YYYY-MM-DD") == "2024-03-04"

    def test_times(self):
        assert format_time(datetime(2024, 1, 1, 13, 5)) == "1:05 PM"
        assert format_time(datetime(2024, 1, 1, 0, 30)) == "12:30 AM"
        assert format_time(datetime(2024, 1, 1, 13, 5), "24h") == "13:05"

    def test_date_time(self):
        value = datetime(2024, 3, 4, 9, 15)
        assert format_date_time(value, "YYYY-MM-DD", "24h") == "2024-03-04 09:15"

    def test_units(self):
        assert format_weight(10, "lbs") == "22.05 lbs"
        assert format_weight(10) == "10.00 kg"
        assert format_area(1, "sqft") == "10.76 ft²"
        assert format_temperature(100, "fahrenheit") == "212.0°F"

    def test_to_metric(self):
        assert round(to_metric_weight(22.0462, "lbs"), 3) == 10.0
        assert to_celsius(212, "fahrenheit") == 100
        assert round(to_metric_area(10.7639, "sqft"), 4) == 1.0
        assert to_metric_area(5, "sqm") == 5

    def test_convert_temperature(self):
        assert convert_temperature(0, "celsius", "fahrenheit") == 32
        assert convert_temperature(-40, "fahrenheit", "celsius") == -40
        assert convert_temperature(21.5, "celsius", "celsius") == 21.5


class TestSettingsRules:
    """Test settings validation and alert rules."""

    def test_single_values(self):
        assert validate_setting_data("currency_decimals", 2) is None
        assert validate_setting_data("currency_decimals", 5) is not None
        assert validate_setting_data("first_day_of_week", True) is not None
        assert validate_setting_data("unknown_key", "anything") is None

    def test_partial_update_collects_errors(self):
        errors = validate_partial_settings(
            {"currency_decimals": 5, "theme": "neon", "notifications": {"x": True}}
        )
        assert len(errors) == 2
        assert errors[0].startswith("currency_decimals:")

    def test_currency_change(self):
        assert validate_currency_change("USD", "NGN") is None
        assert validate_currency_change("USD", "XYZ") == 'Currency code "XYZ" is not supported'

    def test_merge_notifications(self):
        merged = merge_notification_settings(
            {"low_stock": True, "mortality": True},
            {"mortality": False},
            {"low_stock": False},
        )
        assert merged == {"low_stock": False, "mortality": False}

    def test_low_stock_alert(self):
        assert should_trigger_low_stock_alert(20, 100, 20) is True
        assert should_trigger_low_stock_alert(21, 100, 20) is False
        assert should_trigger_low_stock_alert(0, 0, 20) is False

    def test_mortality_alert_needs_both_limits(self):
        assert should_trigger_mortality_alert(90, 100, 5, 10) is True
        assert should_trigger_mortality_alert(90, 100, 5, 20) is False
        assert should_trigger_mortality_alert(90, 100, 15, 5) is False

    def test_settings_summary_groups(self):
        settings = SimpleNamespace(
            currency_code="KES",
            currency_symbol="KSh",
            currency_symbol_position="before",
            date_format="DD/MM/YYYY",
            time_format="24h",
            language="sw",
            weight_unit="kg",
            area_unit="sqm",
            temperature_unit="celsius",
            default_payment_terms_days=14,
            fiscal_year_start_month=7,
        )

        summary = build_settings_summary(settings)

        assert set(summary) == {"currency", "region", "units", "business"}
        assert summary["currency"] == {"code": "KES", "symbol": "KSh", "position": "before"}
        assert summary["region"]["language"] == "sw"
        assert summary["business"] == {"payment_terms_days": 14, "fiscal_year_start": 7}
