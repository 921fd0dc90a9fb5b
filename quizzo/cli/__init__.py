"""Command-line interface for the quizzo core."""
