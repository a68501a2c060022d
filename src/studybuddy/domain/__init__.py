"""Domain layer: entities, errors and business services."""
