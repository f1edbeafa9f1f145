"""Two-way mirror between GameMaker: Studio object XML and editable text."""

__version__ = "0.1.0"
