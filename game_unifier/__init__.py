"""Game unifier: detects games in storage repositories and unifies them across sources."""

__version__ = "0.1.0"
