"""Weighted indexes and the search engine."""
