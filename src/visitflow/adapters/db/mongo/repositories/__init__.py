"""MongoDB repository implementations."""
