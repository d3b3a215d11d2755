"""Confluence documentation source."""

from .client import ConfluenceClient, ConfluencePage, extract_content_text, sanitize_cql_query

__all__ = ["ConfluenceClient", "ConfluencePage", "extract_content_text", "sanitize_cql_query"]
