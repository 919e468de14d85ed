import pytest

from homeease.shared.sanitization import sanitize_dict, sanitize_string
from homeease.shared.validators import validate_email, validate_indian_phone, validate_pincode


class TestIndianPhone:
    @pytest.mark.parametrize(
        "raw",
        ["9876543210", "+91 98765 43210", "+91-9876543210", "09876543210", "919876543210"],
    )
    def test_normalizes_to_ten_digits(self, raw):
        assert validate_indian_phone(raw) == "9876543210"

    @pytest.mark.parametrize("raw", ["5876543210", "98765", "98765432101", "abcdefghij"])
    def test_rejects_invalid_numbers(self, raw):
        with pytest.raises(ValueError):
            validate_indian_phone(raw)


class TestEmail:
    def test_lowercases(self):
        assert validate_email("  Asha@Example.COM ") == "asha@example.com"

    @pytest.mark.parametrize("raw", ["asha", "asha@", "asha@example", "@example.com"])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            validate_email(raw)


class TestPincode:
    def test_accepts_six_digits(self):
        assert validate_pincode(" 560001 ") == "560001"

    @pytest.mark.parametrize("raw", ["56001", "5600011", "56000A", ""])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            validate_pincode(raw)


class TestSanitization:
    def test_escapes_markup_and_quotes(self):
        assert sanitize_string('<a href="x">') == "&lt;a href=&quot;x&quot;&gt;"

    def test_passes_through_none_and_numbers(self):
        assert sanitize_string(None) is None
        assert sanitize_dict({"total": 1050.0, "items": [{"quantity": 2}]}) == {
            "total": 1050.0,
            "items": [{"quantity": 2}],
        }

    def test_nested_values(self):
        data = {"items": [{"name": "<b>Tap</b>"}], "extra": {"note": "a & b"}}

        assert sanitize_dict(data) == {
            "items": [{"name": "&lt;b&gt;Tap&lt;/b&gt;"}],
            "extra": {"note": "a &amp; b"},
        }
