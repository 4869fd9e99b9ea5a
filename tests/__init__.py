# CajaLedger Test Suite
#
# This package contains:
# - Stock ledger, product and concurrency tests
# - Cash register lifecycle and reconciliation tests
# - Reporting, permission and CLI tests
#
# Run with: pytest            (all)
#           pytest -m ledger  (one area: ledger | registers | reports)
