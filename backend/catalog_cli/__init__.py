"""Typer command line client for the Catalog API."""
