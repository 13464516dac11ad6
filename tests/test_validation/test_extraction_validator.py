"""
Extraction validator tests.
Pure function over ExtractionResult — no mocking, no DB.
"""

from decimal import Decimal

import pytest

from app.services.extraction.base import ExtractedProduct, ExtractionResult
from app.services.validation.extraction_validator import (
    ValidationCheck,
    ValidationSeverity,
    validate,
    within_tolerance,
)


def _product(description="Vaso", qty="2", price="100.00", total=None) -> ExtractedProduct:
    return ExtractedProduct(
        description=description,
        quantity=Decimal(qty),
        unit_price=Decimal(price),
        line_total=Decimal(total) if total is not None else None,
    )


def _checks(report, severity):
    return [i.check for i in report.issues if i.severity == severity]


class TestValidatorHappyPath:
    def test_consistent_result_is_valid(self):
        result = ExtractionResult(
            products=[_product(total="200.00"), _product(qty="1", price="50.00")],
            document_total=Decimal("250.00"),
        )
        report = validate(result)
        assert report.valid is True
        assert report.errors == []
        assert report.warnings == []

    def test_zero_price_is_allowed(self):
        report = validate(ExtractionResult(products=[_product(price="0")]))
        assert report.valid is True

    def test_line_total_within_absolute_tolerance(self):
        report = validate(ExtractionResult(products=[_product(total="200.01")]))
        assert report.valid is True

    def test_document_total_after_discount(self):
        result = ExtractionResult(
            products=[_product(total="200.00")],
            discount=Decimal("20.00"),
            document_total=Decimal("180.00"),
        )
        assert validate(result).warnings == []

    def test_document_total_before_discount(self):
        result = ExtractionResult(
            products=[_product(total="200.00")],
            discount=Decimal("20.00"),
            document_total=Decimal("200.00"),
        )
        assert validate(result).warnings == []


class TestValidatorFailures:
    def test_no_products(self):
        report = validate(ExtractionResult())
        assert report.valid is False
        assert _checks(report, ValidationSeverity.ERROR) == [ValidationCheck.PRODUCTS_PRESENT]
        assert report.errors[0].startswith("products_present:")

    def test_blank_description(self):
        report = validate(ExtractionResult(products=[_product(description="  ")]))
        assert ValidationCheck.DESCRIPTION in _checks(report, ValidationSeverity.ERROR)
        assert report.issues[0].product_index == 0

    @pytest.mark.parametrize("qty", ["0", "-1"])
    def test_non_positive_quantity(self, qty):
        report = validate(ExtractionResult(products=[_product(qty=qty)]))
        assert ValidationCheck.QUANTITY in _checks(report, ValidationSeverity.ERROR)

    def test_negative_price(self):
        report = validate(ExtractionResult(products=[_product(price="-5")]))
        assert ValidationCheck.UNIT_PRICE in _checks(report, ValidationSeverity.ERROR)

    def test_line_total_mismatch(self):
        report = validate(ExtractionResult(products=[_product(total="250.00")]))
        assert report.valid is False
        assert ValidationCheck.LINE_TOTAL in _checks(report, ValidationSeverity.ERROR)

    def test_document_total_mismatch_is_only_a_warning(self):
        result = ExtractionResult(
            products=[_product(total="200.00")],
            document_total=Decimal("500.00"),
        )
        report = validate(result)
        assert report.valid is True
        assert _checks(report, ValidationSeverity.WARNING) == [ValidationCheck.DOCUMENT_TOTAL]

    def test_all_checks_run(self):
        result = ExtractionResult(
            products=[
                _product(description="", qty="0"),
                _product(price="-1"),
            ]
        )
        report = validate(result)
        assert set(_checks(report, ValidationSeverity.ERROR)) == {
            ValidationCheck.DESCRIPTION,
            ValidationCheck.QUANTITY,
            ValidationCheck.UNIT_PRICE,
        }
        assert [i.product_index for i in report.issues] == [0, 0, 1]

    def test_does_not_mutate_result(self):
        result = ExtractionResult(products=[_product(total="999")])
        before = repr(result)
        validate(result)
        assert repr(result) == before


class TestWithinTolerance:
    def test_absolute_floor(self):
        assert within_tolerance(Decimal("10.01"), Decimal("10"), Decimal("0.01"), Decimal("0.001"))

    def test_relative_for_large_amounts(self):
        # 0.1% of 100,000 = 100
        assert within_tolerance(
            Decimal("100050"), Decimal("100000"), Decimal("0.01"), Decimal("0.001")
        )
        assert not within_tolerance(
            Decimal("100200"), Decimal("100000"), Decimal("0.01"), Decimal("0.001")
        )
