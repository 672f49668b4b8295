"""PostgreSQL-focused natural language to SQL generation with pluggable AI providers."""

__version__ = "0.1.0"
