"""Command-line interface for Zipwatch."""
