"""Year-in-review usage summaries for AI coding assistants."""

__version__ = "1.0.0"
