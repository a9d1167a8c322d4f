"""Blockpad: block-structured note editing."""

__version__ = "0.1.0"
