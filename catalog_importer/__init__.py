"""
Catalog Importer

Imports a nested JSON product catalog into a relational store.
"""

__version__ = "1.0.0"
