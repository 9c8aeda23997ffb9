"""Feed usage learning and catalog promotion."""
