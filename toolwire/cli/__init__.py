"""Command-line interface for toolwire."""
