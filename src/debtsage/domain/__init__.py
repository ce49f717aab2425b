"""Domain layer: repository protocols and exceptions."""
