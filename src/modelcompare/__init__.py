"""modelcompare - side-by-side answers from several LLM providers."""

__version__ = "0.3.0"
