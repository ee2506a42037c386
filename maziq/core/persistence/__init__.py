"""Persistence — run history."""
