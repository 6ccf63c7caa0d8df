"""notewise: notes enriched with pluggable computed and stored features."""

__version__ = "0.1.0"
