"""MongoDB Beanie document models."""
