"""Ferret - fast file finder for Linux/Unix systems."""

__version__ = "0.1.1"
