"""gitshelf - a reading list kept as markdown in a git repository."""

__version__ = "0.1.0"
