"""Command line interface for treasurebot."""
