"""
Extraction Validator — deterministic, fully testable.

Checks an ExtractionResult for structural soundness before anyone trusts it:
  1. Product list is non-empty                                   (ERROR)
  2. Every product has a description                             (ERROR)
  3. quantity > 0 and unit_price >= 0                            (ERROR)
  4. line_total ≈ quantity × unit_price, when printed            (ERROR)
  5. document_total ≈ sum of lines (net of discount if printed)  (WARNING)

All checks run; failures are collected, never short-circuited. The report
is advisory data for the caller — the user corrects lines in the purchase
order draft before committing.

Check 5 is a WARNING: header totals are read from free text further from
the table and are less reliable than line data.

Design principle: pure function, no I/O, no mutation of the result.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from app.services.extraction.base import ExtractedProduct, ExtractionResult
from app.settings import settings

logger = logging.getLogger(__name__)


class ValidationSeverity:
    ERROR = "ERROR"  # result must not be accepted as-is
    WARNING = "WARNING"  # surfaced to the user, does not invalidate


class ValidationCheck:
    PRODUCTS_PRESENT = "products_present"
    DESCRIPTION = "description"
    QUANTITY = "quantity"
    UNIT_PRICE = "unit_price"
    LINE_TOTAL = "line_total"
    DOCUMENT_TOTAL = "document_total"


@dataclass
class ValidationIssue:
    check: str
    severity: str
    message: str
    product_index: Optional[int] = None  # 0-based index into result.products


@dataclass
class ValidationReport:
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[str]:
        return [
            f"{i.check}: {i.message}"
            for i in self.issues
            if i.severity == ValidationSeverity.ERROR
        ]

    @property
    def warnings(self) -> list[str]:
        return [
            f"{i.check}: {i.message}"
            for i in self.issues
            if i.severity == ValidationSeverity.WARNING
        ]


def validate(result: ExtractionResult) -> ValidationReport:
    """Run every check against result and return the collected report."""
    report = ValidationReport()

    if not result.products:
        report.issues.append(
            ValidationIssue(
                check=ValidationCheck.PRODUCTS_PRESENT,
                severity=ValidationSeverity.ERROR,
                message="No products were found in the PDF.",
            )
        )

    for index, product in enumerate(result.products):
        report.issues.extend(_check_product(index, product))

    total_issue = _check_document_total(result)
    if total_issue is not None:
        report.issues.append(total_issue)

    logger.info(
        "Validation: %s (%d error(s), %d warning(s))",
        "valid" if report.valid else "invalid",
        len(report.errors),
        len(report.warnings),
    )
    return report


def within_tolerance(
    actual: Decimal, expected: Decimal, absolute: Decimal, relative: Decimal
) -> bool:
    """|actual - expected| <= max(absolute, relative × |expected|)."""
    allowed = max(absolute, relative * abs(expected))
    return abs(actual - expected) <= allowed


# ── Private check methods ─────────────────────────────────────────────────────


def _check_product(index: int, product: ExtractedProduct) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    label = f"Product {index + 1}"

    if not (product.description or "").strip():
        issues.append(
            ValidationIssue(
                check=ValidationCheck.DESCRIPTION,
                severity=ValidationSeverity.ERROR,
                message=f"{label}: description is missing.",
                product_index=index,
            )
        )

    if product.quantity is None or product.quantity <= 0:
        issues.append(
            ValidationIssue(
                check=ValidationCheck.QUANTITY,
                severity=ValidationSeverity.ERROR,
                message=f"{label}: quantity {product.quantity} must be greater than zero.",
                product_index=index,
            )
        )

    # Zero is allowed (bonus / gift lines)
    if product.unit_price is None or product.unit_price < 0:
        issues.append(
            ValidationIssue(
                check=ValidationCheck.UNIT_PRICE,
                severity=ValidationSeverity.ERROR,
                message=f"{label}: unit price {product.unit_price} cannot be negative.",
                product_index=index,
            )
        )

    if (
        product.line_total is not None
        and product.quantity is not None
        and product.unit_price is not None
    ):
        expected = product.quantity * product.unit_price
        if not within_tolerance(
            product.line_total,
            expected,
            settings.line_total_tolerance,
            settings.line_total_relative_tolerance,
        ):
            issues.append(
                ValidationIssue(
                    check=ValidationCheck.LINE_TOTAL,
                    severity=ValidationSeverity.ERROR,
                    message=(
                        f"{label}: line total {product.line_total} does not match "
                        f"{product.quantity} × {product.unit_price} = {expected}."
                    ),
                    product_index=index,
                )
            )

    return issues


def _check_document_total(result: ExtractionResult) -> Optional[ValidationIssue]:
    if result.document_total is None or not result.products:
        return None

    lines_sum = sum(
        (
            p.line_total if p.line_total is not None else p.quantity * p.unit_price
            for p in result.products
        ),
        Decimal("0"),
    )
    # Some suppliers print the total before the discount, some after it
    candidates = [lines_sum]
    if result.discount:
        candidates.append(lines_sum - result.discount)

    for expected in candidates:
        if within_tolerance(
            result.document_total,
            expected,
            settings.document_total_tolerance,
            settings.document_total_relative_tolerance,
        ):
            return None

    return ValidationIssue(
        check=ValidationCheck.DOCUMENT_TOTAL,
        severity=ValidationSeverity.WARNING,
        message=(
            f"Document total {result.document_total} differs from the sum of "
            f"the lines ({lines_sum}). Review the products before confirming."
        ),
    )
