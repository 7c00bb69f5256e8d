"""Research tool — web-search answers via the Perplexity API."""

from agw.research.client import ResearchClient
from agw.research.models import ResearchError, ResearchResult

__all__ = ["ResearchClient", "ResearchError", "ResearchResult"]
