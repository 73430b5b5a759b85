"""Almanac: a personal calendar driven by an English-like entry and search language."""

__version__ = "0.1.0"
