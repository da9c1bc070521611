"""Context compression transforms for Blade."""

from .context_compressor import ContextCompressor, compress_messages
from .retention import RetentionPlanner
from .scoring import (
    CODE_INDICATORS,
    IMPORTANT_KEYWORDS,
    ImportanceScore,
    ImportanceScorer,
    contains_code,
    keyword_score,
)
from .summary import (
    SUMMARY_PREFIX,
    TOPIC_KEYWORDS,
    build_summary_message,
    extract_topics,
    insert_summary,
    summarize_messages,
)

__all__ = [
    # Compression entry point
    "ContextCompressor",
    "compress_messages",
    # Retention
    "RetentionPlanner",
    # Scoring
    "ImportanceScorer",
    "ImportanceScore",
    "IMPORTANT_KEYWORDS",
    "CODE_INDICATORS",
    "keyword_score",
    "contains_code",
    # Summaries
    "SUMMARY_PREFIX",
    "TOPIC_KEYWORDS",
    "build_summary_message",
    "extract_topics",
    "insert_summary",
    "summarize_messages",
]
