"""Retrieval-augmented chat backend over a small SQLite knowledge base."""

__version__ = "0.1.0"
