"""Hashing utilities."""

import hashlib


def generate_item_id(source_type: str, key: str) -> str:
    """Generate a stable item ID from a source type and a unique key such as a URL."""
    return hashlib.sha256(f"{source_type}:{key}".encode()).hexdigest()[:16]
