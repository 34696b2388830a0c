# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .invoice import Invoice

__all__ = ["Invoice"]
