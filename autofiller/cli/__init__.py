"""Command line interface for the autofiller engine."""
