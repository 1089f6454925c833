"""
Application pages and their default role access.

Every page of the point-of-sale client maps 1:1 to a path below. Access is
stored per (role, page) in role_permissions; admin bypasses the table.
"""

from .models.auth import ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER, ROLE_VIEWER

# =============================================================================
# PAGE PATHS
# =============================================================================

PAGE_DASHBOARD = "/dashboard"
PAGE_POS = "/pos"
PAGE_PRODUCTS = "/products"
PAGE_SALES = "/sales"
PAGE_CREDIT_CUSTOMERS = "/credit-customers"
PAGE_REFUND = "/refund"
PAGE_REFUNDS = "/refunds"
PAGE_PROFIT_ANALYSIS = "/profit-analysis"
PAGE_SETTINGS = "/settings"
PAGE_DATABASE_SCHEMA = "/database-schema"
PAGE_SETUP = "/setup"

# (path, navigation label) in navigation order
PAGE_DEFINITIONS = [
    (PAGE_DASHBOARD, "Dashboard"),
    (PAGE_POS, "Billing / POS"),
    (PAGE_PRODUCTS, "Products"),
    (PAGE_SALES, "Sales History"),
    (PAGE_CREDIT_CUSTOMERS, "Credit Customers"),
    (PAGE_REFUND, "Refund"),
    (PAGE_REFUNDS, "Refund History"),
    (PAGE_PROFIT_ANALYSIS, "Profit Analysis"),
    (PAGE_SETTINGS, "Settings"),
    (PAGE_DATABASE_SCHEMA, "Database Schema"),
    (PAGE_SETUP, "Setup"),
]

ALL_PAGES = [path for path, _ in PAGE_DEFINITIONS]
PAGE_LABELS = dict(PAGE_DEFINITIONS)


# =============================================================================
# DEFAULT ROLE ACCESS
# =============================================================================

# Pages absent from a role's mapping have no stored row and are denied.
# /database-schema and /setup are admin-only and therefore never seeded.
DEFAULT_ROLE_PAGE_ACCESS = {
    ROLE_ADMIN: {
        PAGE_DASHBOARD: True,
        PAGE_POS: True,
        PAGE_PRODUCTS: True,
        PAGE_SALES: True,
        PAGE_CREDIT_CUSTOMERS: True,
        PAGE_REFUND: True,
        PAGE_REFUNDS: True,
        PAGE_PROFIT_ANALYSIS: True,
        PAGE_SETTINGS: True,
    },
    ROLE_MANAGER: {
        PAGE_DASHBOARD: True,
        PAGE_POS: True,
        PAGE_PRODUCTS: True,
        PAGE_SALES: True,
        PAGE_CREDIT_CUSTOMERS: True,
        PAGE_REFUND: True,
        PAGE_REFUNDS: True,
        PAGE_PROFIT_ANALYSIS: True,
        PAGE_SETTINGS: True,
    },
    ROLE_CASHIER: {
        PAGE_DASHBOARD: True,
        PAGE_POS: True,
        PAGE_PRODUCTS: False,
        PAGE_SALES: True,
        PAGE_CREDIT_CUSTOMERS: True,
        PAGE_REFUND: False,
        PAGE_REFUNDS: False,
        PAGE_PROFIT_ANALYSIS: False,
        PAGE_SETTINGS: False,
    },
    ROLE_VIEWER: {
        PAGE_DASHBOARD: True,
        PAGE_POS: False,
        PAGE_PRODUCTS: True,
        PAGE_SALES: True,
        PAGE_CREDIT_CUSTOMERS: False,
        PAGE_REFUND: False,
        PAGE_REFUNDS: False,
        PAGE_PROFIT_ANALYSIS: False,
        PAGE_SETTINGS: False,
    },
}


def validate_page_path(page_path: str) -> bool:
    return page_path in PAGE_LABELS
