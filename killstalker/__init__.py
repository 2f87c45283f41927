"""Follow a game log and keep a feed and statistics of kills, deaths and incapacitations."""

__version__ = "0.1.0"
__all__ = ["__version__"]