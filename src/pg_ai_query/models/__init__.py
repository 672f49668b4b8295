"""Typed request and result models."""

from pg_ai_query.models.query import QueryRequest, QueryResult

__all__ = [
    "QueryRequest",
    "QueryResult",
]
