"""CLI progress display implementations."""
