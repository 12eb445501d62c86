"""Extract image URLs from a web page and preview them in the terminal."""

__version__ = "0.1.0"
