"""Persistence layer for inquiries, search results and reaction events."""

from .database import Base, Database
from .models import Inquiry, InquiryStatus, ReactionEvent, ResultSource, SearchResult
from .repository import InquiryRepository

__all__ = [
    "Base",
    "Database",
    "Inquiry",
    "InquiryRepository",
    "InquiryStatus",
    "ReactionEvent",
    "ResultSource",
    "SearchResult",
]
