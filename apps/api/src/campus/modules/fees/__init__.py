"""
Fees module - Fee structures and payments.
"""

from campus.modules.fees.models import FeePayment, FeeStructure, PaymentMethod, PaymentStatus

__all__ = ["FeePayment", "FeeStructure", "PaymentMethod", "PaymentStatus"]
