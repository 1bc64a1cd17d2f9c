"""Semantic quality scoring for internal links."""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from .config import EngineConfig, load_config
from .extract import extract_links
from .text import calculate_overlap, extract_key_terms as _extract_key_terms
from .types import (
    BUCKET_MIDDLE,
    QUALITY_MEDIUM,
    QUALITY_STRONG,
    QUALITY_WEAK,
    EdgeAnchor,
    EdgeSemanticAnalysis,
    Post,
    SiloLinkEdge,
)

ISSUE_GENERIC_ANCHOR = "generic anchor detected"
ISSUE_LOW_ALIGNMENT = "low semantic alignment"
ISSUE_MULTIPLE_LINKS = "multiple links to same target"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def extract_key_terms(text: str, top_n: int | None = None, config: EngineConfig | None = None) -> Dict[str, int]:
    """Return the top-N terms of ``text`` using the configured stopwords."""

    engine_config = config or load_config(None)
    count = engine_config.terms("default") if top_n is None else top_n
    return _extract_key_terms(
        text,
        count,
        stopwords=engine_config.phrases("stopwords"),
        min_length=int(engine_config.get("min_term_length", 4)),
    )


def is_generic_anchor(anchor: str, generic_phrases: Iterable[str]) -> bool:
    lowered = (anchor or "").lower().strip()
    return any(phrase in lowered for phrase in generic_phrases)


def score_anchor(anchor: str, target: Post, config: EngineConfig | None = None) -> float:
    """Rate one anchor string against the post it points to (0-100)."""

    engine_config = config or load_config(None)
    weights = engine_config.get("anchor_scoring", {})
    anchor_lower = (anchor or "").lower().strip()

    if is_generic_anchor(anchor_lower, engine_config.phrases("generic_anchors")):
        return float(weights.get("generic_score", 20))

    score = float(weights.get("base_score", 50))

    focus_keyword = (target.focus_keyword or "").lower().strip()
    target_keyword = (target.target_keyword or "").lower().strip()
    if focus_keyword and focus_keyword in anchor_lower:
        score += weights.get("focus_keyword_bonus", 30)
    elif target_keyword and target_keyword in anchor_lower:
        score += weights.get("target_keyword_bonus", 25)

    short = engine_config.terms("short")
    title_terms = extract_key_terms(target.title or "", short, engine_config)
    anchor_terms = extract_key_terms(anchor or "", short, engine_config)
    score += calculate_overlap(title_terms, anchor_terms) * weights.get("title_overlap_weight", 0.2)

    word_count = len((anchor or "").split())
    if weights.get("descriptive_min_words", 2) <= word_count <= weights.get("descriptive_max_words", 6):
        score += weights.get("descriptive_bonus", 10)

    return min(100.0, max(0.0, score))


def post_text(post: Post, config: EngineConfig | None = None) -> str:
    """Visible text of the post plus its title and meta description.

    Markup, attributes and URLs are left out, so overlap scores differ from
    a reading that tokenises the raw HTML.
    """

    body = extract_links(post.content, source_post_id=post.id, config=config).text
    return " ".join(part for part in (body, post.title, post.meta_description) if part)


def quality_label(score: float, config: EngineConfig | None = None) -> str:
    engine_config = config or load_config(None)
    if score >= engine_config.threshold("strong_score"):
        return QUALITY_STRONG
    if score >= engine_config.threshold("medium_score"):
        return QUALITY_MEDIUM
    return QUALITY_WEAK


def analyze_edge_semantics(
    edge: SiloLinkEdge,
    source: Post,
    target: Post,
    anchors: Sequence[EdgeAnchor],
    config: EngineConfig | None = None,
    *,
    texts: Mapping[str, str] | None = None,
) -> EdgeSemanticAnalysis:
    """Score one edge from its anchors and the topical overlap of both posts.

    ``texts`` may carry precomputed :func:`post_text` values keyed by post id
    so a silo-wide pass parses each post only once.
    """

    engine_config = config or load_config(None)
    scored = [replace(anchor, score=score_anchor(anchor.text, target, engine_config)) for anchor in anchors]

    total_count = sum(anchor.count for anchor in scored)
    if total_count > 0:
        anchor_score = sum((anchor.score or 0.0) * anchor.count for anchor in scored) / total_count
    else:
        anchor_score = 0.0

    content_terms = engine_config.terms("content")
    texts = texts or {}
    source_text = texts.get(source.id)
    if source_text is None:
        source_text = post_text(source, engine_config)
    target_text = texts.get(target.id)
    if target_text is None:
        target_text = post_text(target, engine_config)
    content_overlap = calculate_overlap(
        extract_key_terms(source_text, content_terms, engine_config),
        extract_key_terms(target_text, content_terms, engine_config),
    )

    blend = engine_config.get("blend", {})
    final_score = round_half_up(
        blend.get("anchor", 0.7) * anchor_score + blend.get("content", 0.3) * content_overlap
    )

    issues: List[str] = []
    suggestions: List[str] = []

    if any((anchor.score or 0.0) < engine_config.threshold("weak_anchor_score") for anchor in scored):
        keyword = target.focus_keyword or target.target_keyword or "a relevant term"
        issues.append(ISSUE_GENERIC_ANCHOR)
        suggestions.append(f'Use a descriptive anchor containing "{keyword}"')

    if content_overlap < engine_config.threshold("low_alignment_overlap"):
        issues.append(ISSUE_LOW_ALIGNMENT)
        suggestions.append("Verify that the link makes sense in context")

    if edge.count > engine_config.threshold("max_links_per_edge"):
        issues.append(ISSUE_MULTIPLE_LINKS)
        suggestions.append(f"Consolidate the {edge.count} links into a single strong link")

    return EdgeSemanticAnalysis(
        source_id=edge.source_id,
        target_id=edge.target_id,
        count=edge.count,
        quality=quality_label(final_score, engine_config),
        score=final_score,
        anchor_score=anchor_score,
        content_overlap=content_overlap,
        anchors=scored,
        issues=issues,
        suggestions=suggestions,
    )


def analyze_all_edges(
    edges: Sequence[SiloLinkEdge],
    posts: Sequence[Post],
    edge_anchors: Mapping[Tuple[str, str], Sequence[EdgeAnchor]],
    config: EngineConfig | None = None,
) -> List[EdgeSemanticAnalysis]:
    """Analyse every edge whose source and target posts are both known."""

    engine_config = config or load_config(None)
    post_map = {post.id: post for post in posts}
    texts: Dict[str, str] = {}
    analyses: List[EdgeSemanticAnalysis] = []

    for edge in edges:
        source = post_map.get(edge.source_id)
        target = post_map.get(edge.target_id)
        if source is None or target is None:
            continue
        for post in (source, target):
            if post.id not in texts:
                texts[post.id] = post_text(post, engine_config)
        anchors = edge_anchors.get((edge.source_id, edge.target_id))
        if anchors is None:
            anchors = [EdgeAnchor(text="", count=edge.count, position=BUCKET_MIDDLE)]
        analyses.append(analyze_edge_semantics(edge, source, target, anchors, engine_config, texts=texts))

    return analyses
