"""
KBART Validation Layer.

This package holds the header signature of KBART files and the streaming
precheck that compares the opening bytes of a download against it.
"""

from .precheck import Validity, ValidityPrechecker
from .signature import KBART_SIGNATURE, HeaderSignature

__all__ = ["HeaderSignature", "KBART_SIGNATURE", "Validity", "ValidityPrechecker"]
