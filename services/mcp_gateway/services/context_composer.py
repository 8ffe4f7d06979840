"""
ContextComposer - maps a free-text query onto the endpoint catalog.

Produces a ranked list of relevant endpoints and a short advisory text for an
LLM client. Reads the knowledge base snapshot only; never touches the network.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from cachetools import TTLCache

from ..models.context import ContextRequest, ContextResponse, RankedEndpoint
from ..models.endpoint import EndpointRecord
from .knowledge_base import EndpointKnowledgeBase

logger = logging.getLogger("gateway.context")

CHARS_PER_TOKEN = 4
CACHE_MAX_ENTRIES = 256

PATH_WEIGHT = 3
TAG_WEIGHT = 2
DESCRIPTION_WEIGHT = 1
METHOD_WEIGHT = 1

STOP_WORDS = frozenset(
    {
        "a", "about", "all", "an", "and", "any", "are", "as", "at", "be", "by",
        "can", "do", "does", "for", "from", "give", "how", "i", "in",
        "into", "is", "it", "me", "my", "need", "of", "on", "or", "show", "some",
        "that", "the", "them", "then", "this", "to", "want", "we", "what",
        "when", "where", "which", "with", "would", "you",
    }
)

_WORD_RE = re.compile(r"[a-z0-9]+")


def _fold(word: str) -> str:
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def tokenize(text: Optional[str], keep_stop_words: bool = False) -> List[str]:
    """Lower-cased alphanumeric tokens, plural "s" folded, unique, in order."""
    tokens: List[str] = []
    for word in _WORD_RE.findall((text or "").lower()):
        if not keep_stop_words and word in STOP_WORDS:
            continue
        token = _fold(word)
        if token not in tokens:
            tokens.append(token)
    return tokens


def score_endpoint(query_tokens: Sequence[str], endpoint: EndpointRecord) -> float:
    """
    Keyword-overlap relevance of an endpoint, in [0, 1].

    Each query token earns the best weight among the fields it appears in.
    """
    if not query_tokens:
        return 0.0

    path_tokens = set(tokenize(endpoint.path, keep_stop_words=True))
    tag_tokens = {token for tag in endpoint.tags for token in tokenize(tag, keep_stop_words=True)}
    description_tokens = set(tokenize(endpoint.description, keep_stop_words=True))
    method_token = endpoint.method.lower()

    total = 0
    for token in query_tokens:
        if token in path_tokens:
            total += PATH_WEIGHT
        elif token in tag_tokens:
            total += TAG_WEIGHT
        elif token in description_tokens:
            total += DESCRIPTION_WEIGHT
        elif token == method_token:
            total += METHOD_WEIGHT

    relevance = total / (PATH_WEIGHT * len(query_tokens))
    return round(min(1.0, max(0.0, relevance)), 3)


def rank_endpoints(
    query_tokens: Sequence[str],
    endpoints: Sequence[EndpointRecord],
    min_relevance: float,
    limit: int,
) -> List[Tuple[EndpointRecord, float]]:
    """Top `limit` endpoints by descending relevance; ties keep catalog order."""
    scored = [
        (endpoint, score)
        for endpoint, score in ((e, score_endpoint(query_tokens, e)) for e in endpoints)
        if score > 0 and score >= min_relevance
    ]
    # sorted() is stable, so equal scores stay in catalog order
    scored = sorted(scored, key=lambda item: item[1], reverse=True)
    return scored[:limit]


def truncate_to_budget(text: str, max_tokens: int) -> str:
    budget = max_tokens * CHARS_PER_TOKEN
    if len(text) <= budget:
        return text
    if budget <= 3:
        return text[:budget]
    return text[: budget - 3].rstrip() + "..."


class ContextComposer:
    """Answers POST /context from the current knowledge base snapshot."""

    def __init__(
        self,
        knowledge_base: EndpointKnowledgeBase,
        enabled: bool = True,
        allowed_models: Optional[Sequence[str]] = None,
        max_tokens: int = 8192,
        max_results: int = 5,
        min_relevance: float = 0.1,
        cache_enabled: bool = True,
        cache_ttl: int = 3600,
    ):
        self.knowledge_base = knowledge_base
        self.enabled = enabled
        self.allowed_models = list(allowed_models) if allowed_models is not None else None
        self.max_tokens = max_tokens
        self.max_results = max_results
        self.min_relevance = min_relevance
        self.cache: Optional[TTLCache] = (
            TTLCache(maxsize=CACHE_MAX_ENTRIES, ttl=cache_ttl) if cache_enabled else None
        )

    @classmethod
    def from_config(
        cls, knowledge_base: EndpointKnowledgeBase, gateway_config
    ) -> "ContextComposer":
        return cls(
            knowledge_base,
            enabled=gateway_config.MODEL_CONTEXT_ENABLED,
            allowed_models=gateway_config.allowed_models,
            max_tokens=gateway_config.MAX_TOKENS,
            max_results=gateway_config.CONTEXT_MAX_RESULTS,
            min_relevance=gateway_config.CONTEXT_MIN_RELEVANCE,
            cache_enabled=gateway_config.CACHE_ENABLED,
            cache_ttl=gateway_config.CACHE_TTL,
        )

    def compose(self, request: ContextRequest) -> ContextResponse:
        query = (request.query or "").strip()
        if not query:
            return ContextResponse(
                success=False,
                model=request.model,
                error="Query is required",
                code="INVALID_QUERY",
            )
        if not self.enabled:
            return ContextResponse(
                success=False,
                model=request.model,
                error="Model context is disabled",
                code="CONTEXT_DISABLED",
            )
        if (
            request.model
            and self.allowed_models is not None
            and request.model not in self.allowed_models
        ):
            return ContextResponse(
                success=False,
                model=request.model,
                error=f"Model '{request.model}' is not allowed",
                code="MODEL_NOT_ALLOWED",
            )

        snapshot = self.knowledge_base.snapshot
        cache_key = (
            query.lower(),
            request.model,
            request.options.model_dump_json(),
            snapshot.generation,
        )
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Context cache hit for '{query}'")
                return cached

        response = self._build_response(query, request, snapshot.endpoints)
        if self.cache is not None:
            self.cache[cache_key] = response
        return response

    def _build_response(
        self,
        query: str,
        request: ContextRequest,
        endpoints: Sequence[EndpointRecord],
    ) -> ContextResponse:
        options = request.options
        candidates = list(endpoints)
        if options.search and options.search.query:
            candidates = self.knowledge_base.search_endpoints(options.search.query)

        limit = options.max_results or self.max_results
        ranked = rank_endpoints(tokenize(query), candidates, self.min_relevance, limit)

        token_budget = min(options.max_tokens or self.max_tokens, self.max_tokens)
        advisory = truncate_to_budget(
            self._advisory(query, ranked, catalog_empty=not endpoints), token_budget
        )

        logger.info(
            f"Context composed for '{query}': {len(ranked)} of {len(candidates)} endpoints",
            extra={"model": request.model},
        )
        return ContextResponse(
            success=True,
            context=advisory,
            model=request.model,
            endpoints=[
                RankedEndpoint(
                    path=endpoint.path,
                    method=endpoint.method,
                    description=endpoint.description,
                    relevance=score,
                )
                for endpoint, score in ranked
            ],
        )

    @staticmethod
    def _advisory(
        query: str,
        ranked: Sequence[Tuple[EndpointRecord, float]],
        catalog_empty: bool,
    ) -> str:
        if not ranked:
            if catalog_empty:
                return (
                    "The endpoint knowledge base is empty. "
                    "Refresh it with POST /endpoints/refresh and try again."
                )
            return f'No endpoints matched "{query}". Try broader keywords.'

        lines = [f'Relevant endpoints for "{query}":']
        for index, (endpoint, score) in enumerate(ranked, start=1):
            line = f"{index}. {endpoint.method} {endpoint.path}"
            if endpoint.description:
                line += f" - {endpoint.description}"
            lines.append(f"{line} (relevance {score})")

        if any(endpoint.security for endpoint, _ in ranked):
            lines.append(
                "Some of these endpoints require authentication; "
                "calls through /proxy carry the configured API key."
            )
        lines.append("Call them through POST /proxy with {method, path, data?, params?}.")
        return "\n".join(lines)
