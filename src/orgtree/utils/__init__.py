"""Utility helpers for orgtree."""
