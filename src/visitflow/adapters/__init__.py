"""Adapters for persistence, external providers and storage."""
