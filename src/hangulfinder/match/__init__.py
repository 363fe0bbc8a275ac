"""Fuzzy pattern matching."""
