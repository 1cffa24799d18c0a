"""External service ports."""
