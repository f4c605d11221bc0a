"""LibAI - local-first storage for ingested documents and their chunks."""

__version__ = "0.1.0"
