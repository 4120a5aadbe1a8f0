"""
Cart Discount Allocation
Split cart-level discounts across line items to the exact minor unit
"""

__version__ = "0.1.0"
