"""Shared constants for Zipwatch."""
