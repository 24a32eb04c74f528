"""Stripe checkout and webhook reconciliation for Supabase-backed event registrations."""

__version__ = "0.1.0"
