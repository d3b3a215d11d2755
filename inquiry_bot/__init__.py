"""Slack bot that answers team inquiries from past discussions and Confluence."""

__version__ = "0.1.0"
