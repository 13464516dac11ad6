"""
Test fixtures and shared setup.

Router tests get a fresh in-memory SQLite database per test, so nothing
leaks between tests and no external database is needed. Engine tests are
pure functions and use no database at all.

PDF fixtures are generated in-process (see build_pdf) — no binary files
are checked in.
"""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# ── Override settings BEFORE importing app modules ────────────────────────────
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from app.main import app
from app.database import get_db
from app.models import *  # noqa — ensures all models registered
from app.models.base import Base


# ── Database ──────────────────────────────────────────────────────────────────


@pytest.fixture
def db() -> Session:
    """A session on a brand-new in-memory database, discarded after the test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # one shared connection, so every session sees the same DB
    )
    Base.metadata.create_all(bind=engine)
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def client(db: Session) -> TestClient:
    """
    FastAPI test client with DB dependency overridden to use the test session.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ── Sample documents and templates ────────────────────────────────────────────

ACME_TEXT = """\
ACME BAZAR S.A.
Pedido Nº 000123
Fecha: 05/02/2026

Codigo   Descripcion               Cant   Precio      Total
A-100    Vaso de vidrio x 6           2    1.250,00    2.500,00
B-200    Plato playo                 10      800,00    8.000,00
C-300    Olla aluminio N 24           1   19.900,00   19.900,00
Subtotal: $30.400,00
Descuento: $400,00
Total: $30.000,00
"""


@pytest.fixture
def acme_text() -> str:
    """A purchase order as pdfplumber would lay it out."""
    return ACME_TEXT


@pytest.fixture
def acme_template() -> dict:
    """A complete template for ACME_TEXT, as the template editor would send it."""
    return {
        "name": "ACME Bazar",
        "active": True,
        "detect_keywords": ["ACME BAZAR"],
        "header_config": {
            "order_regex": r"Pedido\s*N[°º]?\s*(\d+)",
            "date_regex": r"Fecha:\s*(\d{2}/\d{2}/\d{4})",
            "total_regex": r"^\s*Total:\s*\$?\s*([\d.,]+)",
            "vendor_regex": r"ACME\s+BAZAR",
            "discount_regex": r"Descuento:\s*\$?\s*([\d.,]+)",
        },
        "products_config": {
            "table_start_marker": "Codigo",
            "table_end_marker": "Subtotal",
            "line_regex": r"^(\S+)\s+(.+?)\s+(\d+)\s+([\d.,]+)\s+([\d.,]+)$",
            "field_mapping": {"sku": 1, "description": 2, "qty": 3, "price": 4, "total": 5},
        },
    }


GENERIC_TEXT = """\
Some Unknown Supplier
Orden No: 4521
Realizada el 30/01/2026

Producto A - Test              2     100.50    201.00
Producto B                     3      50.00    150.00
Subtotal: 351.00
Total: $351.00
"""


@pytest.fixture
def generic_text() -> str:
    """A document from a supplier with no template."""
    return GENERIC_TEXT


@pytest.fixture
def sample_supplier(db: Session):
    from app.models.supplier import Supplier

    supplier = Supplier(name="ACME Bazar S.A.", tax_id="30-12345678-9")
    db.add(supplier)
    db.flush()
    return supplier


@pytest.fixture
def stored_template(db: Session, sample_supplier, acme_template):
    from app.models.template import ParsingTemplate

    template = ParsingTemplate(supplier_id=sample_supplier.id, **acme_template)
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


# ── PDF builder ───────────────────────────────────────────────────────────────


def _pdf_string(text: str) -> bytes:
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return b"(" + escaped.encode("cp1252") + b")"


def build_pdf(*pages: list) -> bytes:
    """
    Build a minimal, valid single-font PDF.

    Each page is a list of rows; a row is either a string (printed at the
    left margin) or a list of (x, text) cells printed on the same baseline,
    which is how a table row comes out of a real purchase-order generator.
    """
    page_count = len(pages) or 1
    pages = pages or ([],)
    font_id = 3 + 2 * page_count
    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        (
            "<< /Type /Pages /Kids ["
            + " ".join(f"{3 + 2 * i} 0 R" for i in range(page_count))
            + f"] /Count {page_count} >>"
        ).encode(),
    ]

    for index, rows in enumerate(pages):
        content_id = 4 + 2 * index
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 842] "
                f"/Resources << /Font << /F1 {font_id} 0 R >> >> "
                f"/Contents {content_id} 0 R >>"
            ).encode()
        )

        ops = [b"BT", b"/F1 10 Tf"]
        y = 800
        for row in rows:
            cells = [(50, row)] if isinstance(row, str) else row
            for x, text in cells:
                ops.append(f"1 0 0 1 {x} {y} Tm ".encode() + _pdf_string(text) + b" Tj")
            y -= 16
        ops.append(b"ET")
        stream = b"\n".join(ops)
        objects.append(
            f"<< /Length {len(stream)} >>\nstream\n".encode() + stream + b"\nendstream"
        )

    objects.append(
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>"
    )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def acme_pdf() -> bytes:
    """ACME_TEXT printed as a real PDF with columns at fixed x positions."""

    def row(code, desc, qty, price, total):
        return [(50, code), (110, desc), (300, qty), (350, price), (440, total)]

    return build_pdf(
        [
            "ACME BAZAR S.A.",
            "Pedido Nº 000123",
            "Fecha: 05/02/2026",
            row("Codigo", "Descripcion", "Cant", "Precio", "Total"),
            row("A-100", "Vaso de vidrio x 6", "2", "1.250,00", "2.500,00"),
            row("B-200", "Plato playo", "10", "800,00", "8.000,00"),
            row("C-300", "Olla aluminio N 24", "1", "19.900,00", "19.900,00"),
            "Subtotal: $30.400,00",
            "Descuento: $400,00",
            "Total: $30.000,00",
        ]
    )
