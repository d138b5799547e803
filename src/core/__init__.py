"""Core domain package for postrank.

Core contains scoring, the post store and ranking queries without any
storage-specific or transport code, keeping the business logic portable.
"""
