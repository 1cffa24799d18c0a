"""Domain layer: entities, enums, value objects and errors."""
