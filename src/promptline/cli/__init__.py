"""Command line interface (see app.py)."""
