"""Tests for the option catalogue and pricing."""

from __future__ import annotations

import pytest

from ccs.options import (
    CaseOptions,
    InvalidOptionError,
    calculate_price,
    find_option,
    format_price,
)


class TestPricing:
    @pytest.mark.parametrize(
        "material, finish, expected",
        [
            ("silicone", "smooth", 1400),
            ("polycarbonate", "smooth", 1900),
            ("silicone", "textured", 1700),
            ("polycarbonate", "textured", 2200),
        ],
    )
    def test_calculate_price(self, material: str, finish: str, expected: int) -> None:
        assert calculate_price(material, finish) == expected

    def test_format_price(self) -> None:
        assert format_price(2200) == "$22.00"
        assert format_price(1400) == "$14.00"

    def test_options_price(self) -> None:
        options = CaseOptions("blue", "iphone15", "polycarbonate", "smooth")
        assert options.price == 1900


class TestCaseOptions:
    def test_defaults_are_first_entries(self) -> None:
        assert CaseOptions.default() == CaseOptions("black", "iphonex", "silicone", "smooth")

    def test_labels(self) -> None:
        labels = CaseOptions("rose", "iphone12", "polycarbonate", "textured").labels()
        assert labels == {
            "color": "Rose",
            "model": "iPhone 12",
            "material": "Soft Polycarbonate",
            "finish": "Textured Finish",
        }

    def test_validate_rejects_unknown_value(self) -> None:
        with pytest.raises(InvalidOptionError, match="purple"):
            CaseOptions("purple", "iphonex", "silicone", "smooth").validate()

    def test_find_option_unknown_field(self) -> None:
        with pytest.raises(InvalidOptionError):
            find_option("size", "large")
