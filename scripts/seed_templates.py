"""
Template seed script — create sample suppliers and their PDF parsing
templates so extraction can be tried end-to-end on a fresh database.

Usage (local):
    alembic upgrade head
    python scripts/seed_templates.py

Idempotent — safe to re-run; skips records that already exist.
"""

import os
import sys

# Ensure the project root is on the path when run directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from app.database import SessionLocal
from app.models.supplier import Supplier
from app.models.template import ParsingTemplate
from app.services.extraction.base import MalformedTemplate
from app.services.extraction.templates import compile_template

# ── Sample data ───────────────────────────────────────────────────────────────

# Each entry: supplier fields + one template for that supplier
SAMPLES = [
    {
        "supplier": {
            "name": "Distribuidora Fenix",
            "tax_id": "20-36922999-1",
            "email": "distribuidorafenixoficinas@gmail.com",
        },
        "template": {
            "name": "Distribuidora Fenix — Pedido",
            "detect_keywords": ["DISTRIBUIDORA FENIX", "distribuidorafenix.com.ar"],
            "header_config": {
                "order_regex": r"N[°º]\s*(\d+)",
                "date_regex": r"FECHA:\s*(\d{2}/\d{2}/\d{4})",
                "total_regex": r"^\s*TOTAL:\s*\$?\s*([\d.,]+)",
                "vendor_regex": r"DISTRIBUIDORA\s+FENIX",
                "discount_regex": r"DESCUENTO:\s*\$?\s*([\d.,]+)",
            },
            "products_config": {
                "table_start_marker": "Descripcion",
                "table_end_marker": "CTD ITEMS",
                # Codigo  Descripcion  Cant.  Precio Uni.  % Desc  Sub Total
                "line_regex": (
                    r"^(\S+)\s+(.+?)\s+(\d+,\d{2})\s+([\d.]+,\d{2})"
                    r"\s+\d+,\d{2}\s+([\d.]+,\d{2})$"
                ),
                "field_mapping": {
                    "sku": 1,
                    "description": 2,
                    "qty": 3,
                    "price": 4,
                    "total": 5,
                },
            },
            "notes": "Dux Software layout; quantities and prices use es-AR separators.",
        },
    },
    {
        "supplier": {"name": "Bazar Mayorista Demo"},
        "template": {
            "name": "Bazar Mayorista — Orden de compra",
            "detect_keywords": ["BAZAR MAYORISTA"],
            "header_config": {
                "order_regex": r"Orden\s*(?:No:?)?\s*#?(\d+)",
                "date_regex": r"Fecha:?\s*(\d{2}/\d{2}/\d{4})",
                "total_regex": r"^\s*Total:?\s*\$?\s*([\d.,]+)",
            },
            "products_config": {
                "table_start_marker": "Cant",
                "table_end_marker": "Subtotal",
                "line_regex": r"^(\d+)\s+(.+?)\s+([\d.,]+)$",
                "field_mapping": {"qty": 1, "description": 2, "price": 3},
            },
        },
    },
]


def main() -> None:
    print("\n=== Purchase Order Extraction — Template Seed ===\n")

    with SessionLocal() as db:
        for sample in SAMPLES:
            supplier_data = sample["supplier"]
            template_data = sample["template"]

            # ── Supplier ──────────────────────────────────────────────────────
            supplier = db.scalars(
                select(Supplier).where(Supplier.name == supplier_data["name"])
            ).first()
            if supplier:
                print(f"✓ Supplier '{supplier.name}' already exists — skipping.")
            else:
                supplier = Supplier(**supplier_data)
                db.add(supplier)
                db.flush()
                print(f"✓ Supplier '{supplier.name}' created (id={supplier.id})")

            # ── Template ──────────────────────────────────────────────────────
            existing = db.scalars(
                select(ParsingTemplate).where(ParsingTemplate.name == template_data["name"])
            ).first()
            if existing:
                print(f"✓ Template '{existing.name}' already exists — skipping.")
                continue

            try:
                compile_template(template_data)
            except MalformedTemplate as exc:
                print(f"ERROR: sample template is malformed: {exc}")
                sys.exit(1)

            template = ParsingTemplate(supplier_id=supplier.id, **template_data)
            db.add(template)
            db.flush()
            print(f"✓ Template '{template.name}' created (id={template.id})")

        db.commit()

    print("\nDone.\n")


if __name__ == "__main__":
    main()
