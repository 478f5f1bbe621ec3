"""Export X bookmarks, AI-classify them, and build an Obsidian vault."""

__version__ = "0.1.0"
