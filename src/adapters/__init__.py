"""Persistence adapters that satisfy the core PostRepository port."""
