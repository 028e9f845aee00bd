"""Persistence stores for catalog entities."""
