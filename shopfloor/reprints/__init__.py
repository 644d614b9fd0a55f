"""Reprint request workflow."""
