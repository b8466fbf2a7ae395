"""Peep: see what your friends are up to and let them know you looked."""

__version__ = "1.0.0"
