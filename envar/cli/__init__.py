"""Command line interface for envar."""
