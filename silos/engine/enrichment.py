"""Optional LLM enrichment for internal links.

The collaborator only proposes better anchors and coherence notes for link
occurrences. Its output is attached to a report as-is and never feeds back
into scores, health or actions. Every failure mode collapses to ``None`` so
the deterministic analysis always completes.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

from .config import EngineConfig, load_config
from .semantics import extract_key_terms, post_text
from .types import EnrichmentItem, EnrichmentResult, LinkSuggestion, Post, Silo, SiloMetrics

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent?key={key}"
DEFAULT_MODEL = "gemini-2.0-flash"

STRICT_PROMPT = """
You are an SEO assistant. Do not judge quality. Only suggest anchor improvements and coherence notes.

Rules:
- Use ONLY the provided data.
- Do not invent information.
- Respond with valid JSON only (no markdown, no extra text).
- If you are not sure, return suggested_anchor as an empty array.

Input (JSON):
{payload}

Required JSON output:
{{
  "linkSuggestions": [
    {{
      "occurrenceId": "string",
      "suggested_anchor": ["option 1", "option 2"],
      "suggestion_note": "string",
      "intent_match": 0,
      "coherence_note": "string",
      "remove_link_if": "string"
    }}
  ]
}}
"""


@dataclass(frozen=True)
class EnrichmentBatch:
    """Payload for one enrichment call: the silo name and its link occurrences."""

    silo_name: str
    links: List[EnrichmentItem] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        links = []
        for item in self.links:
            entry = {
                "occurrenceId": item.occurrence_id,
                "sourceTitle": item.source_title,
                "targetTitle": item.target_title,
                "anchorText": item.anchor_text,
                "contextSnippet": item.context_snippet,
            }
            if item.source_focus_keywords:
                entry["sourceFocusKeywords"] = list(item.source_focus_keywords)
            if item.target_focus_keywords:
                entry["targetFocusKeywords"] = list(item.target_focus_keywords)
            links.append(entry)
        return {"siloName": self.silo_name, "links": links}


class EnrichmentProvider(Protocol):
    def suggest(self, batch: EnrichmentBatch) -> Optional[EnrichmentResult]:
        """Return suggestions for ``batch`` or ``None`` when unavailable."""


class NullEnrichment:
    """Provider used when enrichment is disabled or not configured."""

    def suggest(self, batch: EnrichmentBatch) -> Optional[EnrichmentResult]:
        return None


def _keywords(post: Post, limit: int, config: EngineConfig) -> Optional[List[str]]:
    keywords: List[str] = [post.focus_keyword] if post.focus_keyword else []
    for term in extract_key_terms(post_text(post, config), limit, config):
        if term not in keywords:
            keywords.append(term)
    return keywords or None


def build_enrichment_batch(
    silo: Silo,
    posts: Sequence[Post],
    metrics: SiloMetrics,
    config: EngineConfig | None = None,
) -> EnrichmentBatch:
    """Collect every in-silo link occurrence that resolved to a known post."""

    engine_config = config or load_config(None)
    settings = engine_config.get("enrichment", {})
    snippet_length = int(settings.get("snippet_length", 240))
    source_limit = int(settings.get("source_keywords", 5))
    target_limit = int(settings.get("target_keywords", 10))

    post_map = {post.id: post for post in posts}
    targets: Dict[str, str] = {}
    for (_, target_id), occurrence_ids in metrics.edge_occurrences.items():
        for occurrence_id in occurrence_ids:
            targets[occurrence_id] = target_id

    keyword_cache: Dict[tuple, Optional[List[str]]] = {}

    def keywords_for(post: Post, limit: int) -> Optional[List[str]]:
        key = (post.id, limit)
        if key not in keyword_cache:
            keyword_cache[key] = _keywords(post, limit, engine_config)
        return keyword_cache[key]

    items: List[EnrichmentItem] = []
    for occurrence in metrics.occurrences:
        target_id = targets.get(occurrence.occurrence_id)
        source = post_map.get(occurrence.source_post_id)
        target = post_map.get(target_id) if target_id is not None else None
        if source is None or target is None:
            continue
        items.append(
            EnrichmentItem(
                occurrence_id=occurrence.occurrence_id,
                source_title=source.title,
                target_title=target.title,
                anchor_text=occurrence.anchor_text,
                context_snippet=occurrence.context[:snippet_length],
                source_focus_keywords=keywords_for(source, source_limit),
                target_focus_keywords=keywords_for(target, target_limit),
            )
        )
    return EnrichmentBatch(silo_name=silo.name, links=items)


def _intent_match(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if 0 <= value <= 100:
        return float(value)
    return None


def _optional_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else None


def parse_enrichment_payload(data: Any) -> Optional[EnrichmentResult]:
    """Validate a decoded ``{"linkSuggestions": [...]}`` response.

    Returns ``None`` when the top-level shape is wrong. Individual entries
    without an ``occurrenceId`` are skipped; out-of-range ``intent_match``
    values are dropped rather than clamped.
    """

    if not isinstance(data, dict):
        return None
    raw_items = data.get("linkSuggestions")
    if not isinstance(raw_items, list):
        return None

    suggestions: List[LinkSuggestion] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        occurrence_id = raw.get("occurrenceId")
        if not isinstance(occurrence_id, (str, int)) or isinstance(occurrence_id, bool) or occurrence_id == "":
            continue

        anchors = raw.get("suggested_anchor")
        if isinstance(anchors, str):
            suggested = [anchors.strip()] if anchors.strip() else []
        elif isinstance(anchors, list):
            suggested = [item.strip() for item in anchors if isinstance(item, str) and item.strip()]
        else:
            suggested = []

        suggestions.append(
            LinkSuggestion(
                occurrence_id=str(occurrence_id),
                suggested_anchors=suggested,
                suggestion_note=_optional_text(raw.get("suggestion_note")),
                intent_match=_intent_match(raw.get("intent_match")),
                coherence_note=_optional_text(raw.get("coherence_note")),
                remove_link_if=_optional_text(raw.get("remove_link_if")),
            )
        )
    return EnrichmentResult(link_suggestions=suggestions)


class GeminiEnrichment:
    """Enrichment backed by the Gemini ``generateContent`` REST endpoint."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, timeout: float = 20) -> None:
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout

    def _request(self, batch: EnrichmentBatch) -> urllib.request.Request:
        prompt = STRICT_PROMPT.format(payload=json.dumps(batch.to_payload(), ensure_ascii=False))
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0.2},
        }
        return urllib.request.Request(
            GEMINI_ENDPOINT.format(model=self.model, key=self.api_key),
            data=json.dumps(body).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )

    def suggest(self, batch: EnrichmentBatch) -> Optional[EnrichmentResult]:
        if not self.api_key:
            logger.warning("Enrichment requested without an API key")
            return None
        if not batch.links:
            return EnrichmentResult(link_suggestions=[])

        logger.info("Requesting enrichment for silo %s (%d links)", batch.silo_name, len(batch.links))
        try:
            with urllib.request.urlopen(self._request(batch), timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as exc:
            logger.warning("Enrichment request failed: %s", exc)
            return None

        try:
            envelope = json.loads(raw)
            text = envelope["candidates"][0]["content"]["parts"][0]["text"]
            result = parse_enrichment_payload(json.loads(text))
        except (ValueError, KeyError, IndexError, TypeError):
            logger.error("Unexpected enrichment response", exc_info=True)
            return None
        if result is None:
            logger.error("Enrichment response does not contain linkSuggestions")
        return result
