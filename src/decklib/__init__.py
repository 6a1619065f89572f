"""DeckLib - static presentation library builder."""

__version__ = "0.1.0"
