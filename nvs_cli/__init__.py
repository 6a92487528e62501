"""Command line interface for nvs."""
