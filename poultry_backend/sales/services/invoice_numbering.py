# sales/services/invoice_numbering.py

"""
INVOICE NUMBERING

Format: {YYYYMMDD}{sequence:04d}, e.g. 202501100007.

The next sequence is max(existing sequence for the day) + 1. Two concurrent
creations can compute the same number; the unique constraint on
Invoice.invoice_number rejects the loser at insert time and the settlement
engine retries numbering (see InvoiceNumberCollisionError).
"""

from __future__ import annotations

from datetime import date

from django.db.models.functions import Length

from sales.models import Invoice

PREFIX_FORMAT = "%Y%m%d"
PREFIX_LENGTH = 8
SEQUENCE_WIDTH = 4


def invoice_number_prefix(invoice_date: date) -> str:
    return invoice_date.strftime(PREFIX_FORMAT)


def parse_sequence(invoice_number: str) -> int | None:
    if not invoice_number or len(invoice_number) <= PREFIX_LENGTH:
        return None

    tail = invoice_number[PREFIX_LENGTH:]
    if not tail.isdigit():
        return None
    return int(tail)


def format_invoice_number(invoice_date: date, sequence: int) -> str:
    return f"{invoice_number_prefix(invoice_date)}{sequence:0{SEQUENCE_WIDTH}d}"


def next_invoice_number(invoice_date: date) -> str:
    prefix = invoice_number_prefix(invoice_date)

    # Longest first so sequence 10000 sorts after 9999.
    last_number = (
        Invoice.objects.filter(invoice_number__startswith=prefix)
        .annotate(number_length=Length("invoice_number"))
        .order_by("-number_length", "-invoice_number")
        .values_list("invoice_number", flat=True)
        .first()
    )

    last_sequence = parse_sequence(last_number) if last_number else None
    return format_invoice_number(invoice_date, (last_sequence or 0) + 1)
