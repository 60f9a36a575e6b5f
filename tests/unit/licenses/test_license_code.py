"""
Unit tests for license code generation and parsing.
"""

import pytest

from activations.domain.services import parse_device_id, parse_license_code
from core.domain.exceptions import InvalidInputError, InvalidLicenseCodeError, MissingDeviceError
from licenses.domain.license_code import (
    ALPHABET,
    generate_license_code,
    is_valid_license_code,
    normalize_license_code,
)


class TestLicenseCode:
    """Tests for license code helpers."""

    def test_alphabet_has_no_confusable_symbols(self):
        for symbol in "01ILO":
            assert symbol not in ALPHABET
        assert len(set(ALPHABET)) == len(ALPHABET) == 31

    def test_generated_codes_are_well_formed(self):
        """Generated codes use the XXXX-XXXX-XXXX layout."""
        codes = {generate_license_code() for _ in range(200)}

        assert all(is_valid_license_code(code) for code in codes)
        assert all(len(code) == 14 and code.count("-") == 2 for code in codes)
        # 31^12 possibilities; 200 draws never repeat in practice
        assert len(codes) == 200

    def test_normalize_strips_whitespace_and_uppercases(self):
        assert normalize_license_code(" abcd-efgh -jkmn\n") == "ABCD-EFGH-JKMN"
        assert normalize_license_code(None) == ""

    @pytest.mark.parametrize(
        "code",
        ["ABCD-EFGH-JKM", "ABCD-EFGH-JKMNP", "ABCDEFGHJKMN", "ABC0-EFGH-JKMN", "ABCD_EFGH_JKMN"],
    )
    def test_malformed_codes_are_rejected(self, code):
        assert is_valid_license_code(code) is False


class TestInputParsing:
    """Tests for parsing runtime request input."""

    def test_parse_license_code(self):
        assert parse_license_code("abcd-efgh-jkmn") == "ABCD-EFGH-JKMN"

    def test_missing_code(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_license_code("  ")
        assert exc_info.value.code == "MISSING_CODE"

    def test_malformed_code(self):
        with pytest.raises(InvalidLicenseCodeError) as exc_info:
            parse_license_code("not-a-code")
        assert exc_info.value.code == "INVALID_CODE_FORMAT"

    def test_missing_device(self):
        with pytest.raises(MissingDeviceError):
            parse_device_id(None)

    def test_device_too_long(self):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_device_id("d" * 256)
        assert exc_info.value.code == "INVALID_DEVICE"

    def test_device_is_trimmed(self):
        assert parse_device_id("  device-1 ") == "device-1"
