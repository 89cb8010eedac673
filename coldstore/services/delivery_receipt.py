"""
Delivery receipt (DR) PDF pour une commande expédiée.
"""

from __future__ import annotations

from fpdf import FPDF

from coldstore.app.core.config import settings
from coldstore.app.db.models.core_types import OutboundStatus
from coldstore.app.db.models.models_v1 import OutboundOrder
from coldstore.services.errors import WorkflowError

SIGNATURE = "______________________"

COLUMNS = [
    ("Product", 62),
    ("Batch", 30),
    ("Expiry", 24),
    ("Qty", 16),
    ("Boxes", 16),
    ("Kilos", 20),
    ("Amount", 22),
]


def _ascii(value) -> str:
    # les polices de base fpdf sont en latin-1
    if value is None:
        return ""
    return str(value).encode("latin-1", "replace").decode("latin-1")


def _fmt(value) -> str:
    if value is None:
        return "-"
    return f"{float(value):,.2f}"


def render_delivery_receipt(order: OutboundOrder) -> bytes:
    if order.status != OutboundStatus.dispatched or not order.dr_number:
        raise WorkflowError("Delivery receipt is only available for dispatched orders")

    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _ascii(settings.company_name), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(0, 8, "DELIVERY RECEIPT", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(6)

    pdf.set_font("Helvetica", size=10)
    customer = order.customer
    header = [
        ("DR Number", order.dr_number),
        ("Order Number", order.order_number),
        ("Dispatch Date", order.dispatch_date.strftime("%Y-%m-%d %H:%M") if order.dispatch_date else ""),
        ("Customer", customer.name if customer else ""),
        ("Delivery Address", order.delivery_address or (customer.address if customer else "")),
        ("Prepared By", order.prepared_by),
    ]
    for label, value in header:
        pdf.cell(40, 7, f"{label}:")
        pdf.cell(0, 7, _ascii(value), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 9)
    for title, width in COLUMNS:
        pdf.cell(width, 7, title, border=1, align="C")
    pdf.ln()

    pdf.set_font("Helvetica", size=9)
    total_qty = sum(item.picked_quantity for item in order.items)
    total_boxes = sum(item.box_quantity or 0 for item in order.items)
    total_kilos = sum(float(item.weight_kilos or 0) for item in order.items)
    total_amount = sum(float(item.total_amount or 0) for item in order.items)
    for item in order.items:
        row = [
            _ascii(item.product.name)[:34],
            _ascii(item.batch_number),
            item.expiry_date.isoformat() if item.expiry_date else "",
            str(item.picked_quantity),
            "" if item.box_quantity is None else str(item.box_quantity),
            _fmt(item.weight_kilos),
            _fmt(item.total_amount),
        ]
        for (_, width), value in zip(COLUMNS, row):
            pdf.cell(width, 7, value, border=1)
        pdf.ln()

    pdf.set_font("Helvetica", "B", 9)
    label_width = sum(width for _, width in COLUMNS[:3])
    pdf.cell(label_width, 7, "TOTAL", border=1, align="R")
    totals = [str(total_qty), str(total_boxes), _fmt(total_kilos), _fmt(total_amount)]
    for (_, width), value in zip(COLUMNS[3:], totals):
        pdf.cell(width, 7, value, border=1)
    pdf.ln(20)

    pdf.set_font("Helvetica", size=10)
    pdf.cell(95, 7, f"Prepared by: {_ascii(order.prepared_by) or SIGNATURE}")
    pdf.cell(0, 7, f"Received by: {_ascii(order.received_by_customer) or SIGNATURE}", new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())
