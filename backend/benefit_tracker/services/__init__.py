"""Domain services: period generation, usage derivation and statement import."""
