"""
Feedback-to-idea matching.

Components:
- MatchRefiner: Stage-1 vector recall, Stage-2 LLM rerank
- FallbackMatcher: single-call LLM matching over a capped pool
- MatchingService: facade choosing between the two
- parse_llm_json / extract_json_object: tolerant LLM response parsing
"""

from src.matching.config import MatchingConfig
from src.matching.fallback import FallbackMatcher
from src.matching.parsing import ParseFallback, ParseSuccess, extract_json_object, parse_llm_json
from src.matching.refiner import FALLBACK_REASON, MatchRefiner
from src.matching.schemas import (
    EvidenceResult,
    FeedbackIdeaLink,
    FeedbackItem,
    Idea,
    IdeaStatus,
    IdeaSuggestionResult,
    MatchCandidate,
    SuggestedNewIdea,
    TriageStatus,
)
from src.matching.service import MatchingService, MatchOptions

__all__ = [
    "FALLBACK_REASON",
    "EvidenceResult",
    "FallbackMatcher",
    "FeedbackIdeaLink",
    "FeedbackItem",
    "Idea",
    "IdeaStatus",
    "IdeaSuggestionResult",
    "MatchCandidate",
    "MatchOptions",
    "MatchRefiner",
    "MatchingConfig",
    "MatchingService",
    "ParseFallback",
    "ParseSuccess",
    "SuggestedNewIdea",
    "TriageStatus",
    "extract_json_object",
    "parse_llm_json",
]
