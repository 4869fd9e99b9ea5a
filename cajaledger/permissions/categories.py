# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and display."""
    INVENTORY = "INVENTORY"
    REGISTERS = "REGISTERS"
    REPORTS = "REPORTS"
