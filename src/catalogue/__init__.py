"""Catalogue bounded context: products and their stock."""
