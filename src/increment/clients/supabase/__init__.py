"""Supabase-backed remote gateway."""

from .client import SupabaseGateway

__all__ = ["SupabaseGateway"]
