"""Enums for model fields."""

from enum import Enum


class ReceiptStatus(str, Enum):
    """Lifecycle of a receipt's analysis."""

    UPLOADED = "uploaded"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    FAILED = "failed"


class TransactionType(str, Enum):
    """Kinds of stock ledger entries."""

    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    ADJUSTMENT = "adjustment"
    EXPIRATION = "expiration"
