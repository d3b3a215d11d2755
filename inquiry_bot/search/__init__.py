"""Multi-source search and ranking."""

from .engine import SearchEngine, build_slack_message_url, filter_and_rank, slack_ts_to_datetime
from .keywords import STOP_WORDS, calculate_score, extract_keywords, score_keywords

__all__ = [
    "STOP_WORDS",
    "SearchEngine",
    "build_slack_message_url",
    "calculate_score",
    "extract_keywords",
    "filter_and_rank",
    "score_keywords",
    "slack_ts_to_datetime",
]
