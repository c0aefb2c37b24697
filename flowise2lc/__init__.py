"""flowise2lc: convert Flowise flows into LangChain code."""

__version__ = "0.1.0"
