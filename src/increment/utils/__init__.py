"""Shared helpers for increment."""
