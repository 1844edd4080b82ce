"""ContextDojo - conversation topic map for a conversational skills coach."""

__version__ = "0.1.0"
