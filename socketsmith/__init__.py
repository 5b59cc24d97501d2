"""Socket Smith: gem socketing for role-playing-game items."""

__version__ = '0.1.0'
