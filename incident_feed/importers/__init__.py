"""Importers for offline complaint data."""

from .json_importer import JSONImporter

__all__ = ["JSONImporter"]
