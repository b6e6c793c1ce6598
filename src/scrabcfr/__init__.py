"""Tabular CFR training engine for tic-tac-toe and Scrabble."""

__version__ = "0.1.0"
