"""
Sample invoice as a PDF.

The Bill Pay demo opens with the invoice a customer is about
to pay; this renders the same data the JSON endpoint returns
so the two never drift apart. Positions are in millimetres on
an A4 page.
"""

from fpdf import FPDF

INVOICE_DATE = "January 15, 2024"
INVOICE_DUE_DATE = "February 15, 2024"
BILL_TO = ["Wile E. Coyote", "Cave #7, Mesa Ridge", "Desert, AZ 00000"]
FOOTER_LINES = [
    'Thank you for choosing ACME - "Quality Is Our #1 Dream"',
    "ACME is not responsible for product malfunctions, cliff-related incidents, "
    "or roadrunner escapes.",
]

PAGE_CENTER = 105
RIGHT_EDGE = 188


def format_cents(cents: int) -> str:
    return f"${cents / 100:,.2f}"


def _text_right(pdf: FPDF, x: float, y: float, text: str) -> None:
    pdf.text(x - pdf.get_string_width(text), y, text)


def _text_center(pdf: FPDF, x: float, y: float, text: str) -> None:
    pdf.text(x - pdf.get_string_width(text) / 2, y, text)


def render_invoice_pdf(invoice: dict) -> bytes:
    """Lay out an invoice shaped like SAMPLE_INVOICE and return the PDF bytes."""
    pdf = FPDF(unit="mm", format="A4")
    pdf.set_auto_page_break(False)
    pdf.add_page()

    pdf.set_font("helvetica", style="B", size=24)
    pdf.text(20, 25, "INVOICE")

    pdf.set_font("helvetica", size=10)
    pdf.text(140, 20, f"Invoice #: {invoice['invoice_number']}")
    pdf.text(140, 26, f"Date: {INVOICE_DATE}")
    pdf.text(140, 32, f"Due Date: {INVOICE_DUE_DATE}")

    pdf.set_font("helvetica", style="B", size=10)
    pdf.text(20, 50, "From:")
    pdf.text(120, 50, "Bill To:")
    pdf.set_font("helvetica", size=10)
    pdf.text(20, 56, invoice["vendor_name"])
    for i, line in enumerate(invoice["vendor_address"].split("\n")):
        pdf.text(20, 62 + i * 5, line)
    for i, line in enumerate(BILL_TO):
        pdf.text(120, 56 + i * 6, line)

    # Line items
    table_top = 90
    pdf.set_fill_color(240, 240, 240)
    pdf.rect(20, table_top - 6, 170, 8, style="F")
    pdf.set_font("helvetica", style="B", size=10)
    pdf.text(22, table_top, "Description")
    _text_right(pdf, RIGHT_EDGE, table_top, "Amount")

    pdf.set_font("helvetica", size=10)
    y = table_top + 10
    for item in invoice["line_items"]:
        pdf.text(22, y, item["description"])
        _text_right(pdf, RIGHT_EDGE, y, format_cents(item["amount"]))
        y += 8

    pdf.set_draw_color(200, 200, 200)
    pdf.line(20, y, 190, y)

    y += 10
    pdf.set_font("helvetica", style="B", size=10)
    pdf.text(130, y, "Total Due:")
    pdf.set_font("helvetica", style="B", size=12)
    _text_right(pdf, RIGHT_EDGE, y, format_cents(invoice["amount"]))

    # Payment instructions box
    y += 20
    ach = invoice["ach_instructions"]
    pdf.set_fill_color(248, 250, 252)
    pdf.set_draw_color(100, 116, 139)
    pdf.rect(20, y - 4, 170, 40, style="DF")
    pdf.set_font("helvetica", style="B", size=11)
    pdf.text(25, y + 4, "ACH Payment Instructions")
    pdf.set_font("helvetica", size=10)
    pdf.text(25, y + 14, f"Bank Name: {ach['bank_name']}")
    pdf.text(25, y + 22, f"Routing Number: {ach['routing_number']}")
    pdf.text(25, y + 30, f"Account Number: {ach['account_number']}")

    pdf.set_font("helvetica", size=9)
    pdf.set_text_color(128, 128, 128)
    for i, line in enumerate(FOOTER_LINES):
        _text_center(pdf, PAGE_CENTER, 280 + i * 6, line)

    return bytes(pdf.output())
