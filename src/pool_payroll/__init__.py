"""Payroll and percentage payout engine for a pool sales company."""

__version__ = "0.1.0"
