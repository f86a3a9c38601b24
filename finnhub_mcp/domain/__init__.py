"""
Domain layer - Core business entities and domain logic.

This layer contains the search value objects, the result envelope and the
error taxonomy, independent of any transport or HTTP concerns.
"""
