"""
Unit Tests - Field Transforms
"""
import pytest

from catalog_importer.ingestion.transforms import (
    FieldParseError,
    PlaceholderGenerator,
    is_variant_scalar,
    parse_discount,
    parse_price,
    parse_rating,
    variant_value,
)


class TestParsePrice:
    """Tests for parse_price"""

    def test_strips_thousands_separators(self):
        """Comma separators are removed before parsing"""
        assert parse_price("1,299") == 1299.0
        assert parse_price("1,234,567.89") == 1234567.89

    def test_accepts_numbers(self):
        """Numeric input passes through as float"""
        assert parse_price(49.5) == 49.5
        assert parse_price(20) == 20.0

    def test_non_numeric_raises(self):
        """Unparseable text is a field error"""
        with pytest.raises(FieldParseError) as exc_info:
            parse_price("abc")

        assert exc_info.value.field == "price"
        assert exc_info.value.value == "abc"

    def test_field_name_in_error(self):
        """The error names the field being parsed"""
        with pytest.raises(FieldParseError, match="old_price"):
            parse_price("n/a", "old_price")

    @pytest.mark.parametrize("value", [None, "", "nan", "inf", True])
    def test_missing_or_non_finite_raises(self, value):
        """Missing, boolean and non-finite prices are errors"""
        with pytest.raises(FieldParseError):
            parse_price(value)


class TestParseDiscount:
    """Tests for parse_discount"""

    @pytest.mark.parametrize("value", [None, 0, 0.0, "", False])
    def test_defaults_to_zero(self, value):
        """Falsy discounts become zero"""
        assert parse_discount(value) == 0

    def test_numeric_values(self):
        """Numbers and numeric strings parse"""
        assert parse_discount(15) == 15.0
        assert parse_discount("10") == 10.0

    def test_non_numeric_raises(self):
        """Unparseable text is a field error"""
        with pytest.raises(FieldParseError, match="discount"):
            parse_discount("ten")


class TestParseRating:
    """Tests for parse_rating"""

    def test_parses_strings_and_numbers(self):
        """Numeric strings and numbers parse"""
        assert parse_rating("4.5") == 4.5
        assert parse_rating(3) == 3.0

    def test_none_is_kept(self):
        """Absent rating stays None"""
        assert parse_rating(None) is None

    def test_separators_are_not_stripped(self):
        """Ratings do not get separator stripping"""
        with pytest.raises(FieldParseError):
            parse_rating("4,5")


class TestVariantValue:
    """Tests for variant_value"""

    def test_stringifies_scalars(self):
        """Scalars become their string form"""
        assert variant_value(250) == "250"
        assert variant_value(0.5) == "0.5"
        assert variant_value("XL") == "XL"

    def test_integral_float_drops_fraction(self):
        """4.0 and 4 give the same value"""
        assert variant_value(4.0) == "4"


class TestIsVariantScalar:
    """Tests for is_variant_scalar"""

    @pytest.mark.parametrize("value", [250, 0.5, "XL", ""])
    def test_scalars(self, value):
        """Numbers and strings are variant values"""
        assert is_variant_scalar(value)

    @pytest.mark.parametrize("value", [None, True, False, [4], {"gb": 8}])
    def test_non_scalars(self, value):
        """Null, booleans, lists and objects are not"""
        assert not is_variant_scalar(value)


class TestPlaceholderGenerator:
    """Tests for PlaceholderGenerator"""

    def test_seeded_generators_agree(self):
        """Same seed, same sequence"""
        first = PlaceholderGenerator(seed=42)
        second = PlaceholderGenerator(seed=42)

        assert [first.stock_quantity() for _ in range(20)] == [second.stock_quantity() for _ in range(20)]
        assert [first.is_featured() for _ in range(20)] == [second.is_featured() for _ in range(20)]

    def test_stock_within_range(self):
        """Stock stays within the configured bounds"""
        generator = PlaceholderGenerator(stock_min=10, stock_max=12, seed=1)
        values = {generator.stock_quantity() for _ in range(200)}

        assert values <= {10, 11, 12}

    def test_featured_probability_bounds(self):
        """Probability 0 and 1 are deterministic"""
        never = PlaceholderGenerator(featured_probability=0.0, seed=1)
        always = PlaceholderGenerator(featured_probability=1.0, seed=1)

        assert not any(never.is_featured() for _ in range(50))
        assert all(always.is_featured() for _ in range(50))

    def test_inverted_range_rejected(self):
        """stock_min above stock_max is rejected"""
        with pytest.raises(ValueError):
            PlaceholderGenerator(stock_min=20, stock_max=10)
