"""Tegata: signed cookies with current/previous secret rotation."""

__version__ = "0.1.0"
