"""Command-line interface for filesort."""
