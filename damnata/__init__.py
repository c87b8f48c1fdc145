"""Evolutio Damnata - enemy AI decision engine and headless arena."""

__version__ = "0.1.0"
