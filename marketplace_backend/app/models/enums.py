"""
User roles enumeration.

Defines the role types for the marketplace.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        ADMIN: Platform operator, owns tax revenue and approves withdrawals
        MERCHANT: Sells products and holds a finance ledger
        CUSTOMER: Places orders (default role)
    """
    ADMIN = "ADMIN"
    MERCHANT = "MERCHANT"
    CUSTOMER = "CUSTOMER"
