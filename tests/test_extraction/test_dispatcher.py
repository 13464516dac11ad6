"""
Dispatcher tests — full extraction flow over text and over generated PDFs.
"""

import copy
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.services.extraction.base import ExtractionMethod, UnreadablePdf
from app.services.extraction.dispatcher import (
    extract_data_from_pdf,
    extract_data_from_text,
    is_pdf_upload,
)


class TestExtractFromText:
    def test_matching_template_is_used(self, acme_text, acme_template):
        result = extract_data_from_text(acme_text, [acme_template])
        assert result.extraction_method == ExtractionMethod.TEMPLATE
        assert result.template_name == "ACME Bazar"
        assert len(result.products) == 3

    def test_no_match_uses_generic_parser(self, generic_text, acme_template):
        result = extract_data_from_text(generic_text, [acme_template])
        assert result.extraction_method == ExtractionMethod.GENERIC
        assert result.template_name is None
        assert len(result.products) == 2

    def test_no_templates_uses_generic_parser(self, generic_text):
        result = extract_data_from_text(generic_text)
        assert result.extraction_method == ExtractionMethod.GENERIC

    def test_malformed_matching_template_is_skipped_with_warning(self, acme_text, acme_template):
        broken = copy.deepcopy(acme_template)
        broken["name"] = "ACME broken"
        broken["products_config"]["line_regex"] = "(("

        result = extract_data_from_text(acme_text, [broken, acme_template])

        assert result.template_name == "ACME Bazar"
        assert any(
            "Template skipped" in w and "products_config.line_regex" in w
            for w in result.warnings
        )

    def test_malformed_unrelated_template_is_not_reported(self, generic_text, acme_template):
        acme_template["products_config"]["line_regex"] = "(("
        result = extract_data_from_text(generic_text, [acme_template])
        assert not any("Template skipped" in w for w in result.warnings)

    def test_unexpected_failure_is_absorbed(self, acme_text, acme_template):
        with patch(
            "app.services.extraction.dispatcher.apply_template",
            side_effect=RuntimeError("boom"),
        ):
            result = extract_data_from_text(acme_text, [acme_template])
        assert result.products == []
        assert result.extraction_method == ExtractionMethod.TEMPLATE
        assert any("boom" in w for w in result.warnings)


class TestExtractFromPdf:
    def test_end_to_end_with_template(self, acme_pdf, acme_template):
        result = extract_data_from_pdf(acme_pdf, [acme_template])
        assert result.extraction_method == ExtractionMethod.TEMPLATE
        assert [p.sku for p in result.products] == ["A-100", "B-200", "C-300"]
        assert result.products[2].unit_price == Decimal("19900.00")
        assert result.document_total == Decimal("30000.00")

    def test_end_to_end_generic(self, make_pdf):
        data = make_pdf(
            [
                "Orden No: 77",
                [(50, "Producto A - Test"), (300, "2"), (360, "100.50"), (440, "201.00")],
                "Total: $201.00",
            ]
        )
        result = extract_data_from_pdf(data)
        assert result.extraction_method == ExtractionMethod.GENERIC
        assert result.order_number == "77"
        product = result.products[0]
        assert product.description == "Producto A - Test"
        assert product.quantity == Decimal("2")
        assert product.line_total == Decimal("201.00")

    def test_image_only_pdf_warns(self, make_pdf):
        result = extract_data_from_pdf(make_pdf([]))
        assert result.products == []
        assert "no readable text layer" in result.warnings[0]

    def test_unreadable_pdf_escapes(self):
        with pytest.raises(UnreadablePdf):
            extract_data_from_pdf(b"not a pdf at all")


class TestIsPdfUpload:
    @pytest.mark.parametrize(
        "filename, content_type, expected",
        [
            ("order.pdf", "application/pdf", True),
            ("order", "application/pdf", True),
            ("order.PDF", "application/octet-stream", True),
            ("order.pdf", None, True),
            ("order.csv", "application/octet-stream", False),
            ("order.pdf", "text/csv", False),
        ],
    )
    def test_detection(self, filename, content_type, expected):
        assert is_pdf_upload(filename, content_type) is expected
