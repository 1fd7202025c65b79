"""Feedmill stock planning and transactional ledger engine."""

__version__ = "1.0.0"
