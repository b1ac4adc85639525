"""ghostpost - manage one Ghost blog's posts from a conversational agent."""

__version__ = "0.1.0"
