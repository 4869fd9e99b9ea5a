# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_PRODUCTS",
        "View Products",
        "List products and their current stock",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create products in the catalogue",
        PermissionCategory.INVENTORY,
    ),
    (
        "RECORD_MOVEMENT",
        "Record Movement",
        "Record ENTRY, EXIT and ADJUST stock movements",
        PermissionCategory.INVENTORY,
    ),
    (
        "VIEW_LEDGER",
        "View Stock Ledger",
        "View the global stock movement history",
        PermissionCategory.INVENTORY,
    ),
]


# -- REGISTERS --

REGISTER_PERMISSIONS = [
    (
        "OPERATE_OWN_REGISTER",
        "Operate Own Register",
        "Open, update and close own cash register records",
        PermissionCategory.REGISTERS,
    ),
    (
        "MANAGE_ALL_REGISTERS",
        "Manage All Registers",
        "View and edit any user's register, including closed ones",
        PermissionCategory.REGISTERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_DASHBOARD",
        "View Dashboard",
        "View today's totals, low stock and inventory valuation",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_REGISTER_ANALYTICS",
        "View Register Analytics",
        "View register history analytics and discrepancy rates",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + REGISTER_PERMISSIONS
    + REPORT_PERMISSIONS
)
