"""Coordinator for the silo analysis pipeline."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Sequence, Tuple

from .config import EngineConfig, load_config
from .enrichment import EnrichmentProvider, build_enrichment_batch
from .graph import build_silo_metrics
from .health import build_silo_health, generate_silo_actions, summarize_silo_health
from .semantics import analyze_all_edges
from .types import LinkSuggestion, Post, Silo, SiloPost, SiloReport

logger = logging.getLogger(__name__)

ENRICHMENT_SKIPPED = "skipped"
ENRICHMENT_SUCCESS = "success"
ENRICHMENT_FAILED = "failed"


def _members(silo: Silo, posts: Sequence[Post], silo_posts: Sequence[SiloPost]) -> List[Post]:
    """Restrict ``posts`` to members of ``silo``; no memberships at all keeps every post."""

    if not silo_posts:
        return list(posts)
    member_ids = {member.post_id for member in silo_posts if member.silo_id == silo.id}
    return [post for post in posts if post.id in member_ids]


def analyze_silo(
    silo: Silo,
    posts: Sequence[Post],
    silo_posts: Sequence[SiloPost],
    *,
    site_url: str | None = None,
    config: EngineConfig | None = None,
    enrichment: EnrichmentProvider | None = None,
) -> SiloReport:
    """Run extraction, graph building, scoring, health rules and actions for one silo.

    The enrichment provider runs last and only when given; whatever it
    returns is attached to the report without touching any score.
    """

    engine_config = config or load_config(None)
    members = _members(silo, posts, silo_posts)
    memberships = [member for member in silo_posts if member.silo_id == silo.id]

    metrics = build_silo_metrics(silo, members, site_url=site_url, config=engine_config)
    analyses = analyze_all_edges(metrics.adjacency, members, metrics.edge_anchors, engine_config)
    health = build_silo_health(members, memberships, metrics, analyses, engine_config)
    actions = generate_silo_actions(health, memberships, members, engine_config)
    summary = summarize_silo_health(health, analyses)

    status = ENRICHMENT_SKIPPED
    suggestions: List[LinkSuggestion] = []
    if enrichment is not None:
        batch = build_enrichment_batch(silo, members, metrics, engine_config)
        try:
            result = enrichment.suggest(batch)
        except Exception:
            logger.warning("Enrichment provider raised for silo %s", silo.slug, exc_info=True)
            result = None
        if result is None:
            status = ENRICHMENT_FAILED
            logger.warning("Enrichment unavailable for silo %s", silo.slug)
        else:
            status = ENRICHMENT_SUCCESS
            suggestions = list(result.link_suggestions)

    logger.info(
        "Analysed silo %s: %d posts, %d edges, %d actions, health %d (%s)",
        silo.slug,
        len(members),
        len(metrics.adjacency),
        len(actions),
        summary.health_score,
        summary.status,
    )

    return SiloReport(
        silo_id=silo.id,
        metrics=metrics,
        analyses=analyses,
        health=health,
        actions=actions,
        summary=summary,
        enrichment_status=status,
        link_suggestions=suggestions,
    )


def _edge_key(key: Tuple[str, str]) -> str:
    return f"{key[0]}->{key[1]}"


def report_to_dict(report: SiloReport) -> Dict[str, Any]:
    """Return a JSON-ready representation of ``report``.

    Edge-keyed mappings use ``"<source>-><target>"`` string keys. Every list
    keeps the pipeline's deterministic order.
    """

    metrics = report.metrics
    return {
        "silo_id": report.silo_id,
        "metrics": {
            "totals": dict(metrics.totals),
            "rel_counts": dict(metrics.rel_counts),
            "distribution": dict(metrics.distribution),
            "per_post": [asdict(item) for item in metrics.per_post],
            "adjacency": [asdict(edge) for edge in metrics.adjacency],
            "orphan_posts": list(metrics.orphan_posts),
            "super_linked_posts": [dict(item) for item in metrics.super_linked_posts],
            "edge_anchors": {
                _edge_key(key): [asdict(anchor) for anchor in anchors]
                for key, anchors in metrics.edge_anchors.items()
            },
            "occurrences": [asdict(occurrence) for occurrence in metrics.occurrences],
            "edge_occurrences": {
                _edge_key(key): list(ids) for key, ids in metrics.edge_occurrences.items()
            },
        },
        "analyses": [asdict(analysis) for analysis in report.analyses],
        "health": asdict(report.health),
        "actions": [asdict(action) for action in report.actions],
        "summary": asdict(report.summary),
        "enrichment_status": report.enrichment_status,
        "link_suggestions": [asdict(suggestion) for suggestion in report.link_suggestions],
    }
