"""Application layer: ports, use cases and pagination."""
