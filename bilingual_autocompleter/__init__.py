"""Offline bilingual (Kannada + English) word completion and next-word prediction."""

__version__ = "0.1.0"
