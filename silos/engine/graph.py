"""Silo link graph construction."""

from __future__ import annotations

from collections import Counter
from typing import Dict, List, Sequence, Tuple

from .config import EngineConfig, load_config
from .extract import extract_links
from .paths import is_under_silo, normalize_path, post_path
from .types import (
    BUCKETS,
    KIND_AFFILIATE,
    EdgeAnchor,
    LinkOccurrence,
    Post,
    Silo,
    SiloLinkEdge,
    SiloMetrics,
    SiloPostMetrics,
)

EdgeKey = Tuple[str, str]


def build_post_path_map(silo: Silo, posts: Sequence[Post]) -> Dict[str, str]:
    """Map every known path of a silo member to its post id.

    Canonical paths win over synthesized ``/<silo>/<slug>`` paths, and when
    two posts claim the same path the lowest id wins, so the mapping does
    not depend on the order of ``posts``.
    """

    ordered = sorted(posts, key=lambda post: str(post.id))
    mapping: Dict[str, str] = {}
    for post in ordered:
        canonical = normalize_path(post.canonical_path)
        if canonical:
            mapping.setdefault(canonical, post.id)
    for post in ordered:
        synthesized = post_path(silo.slug, post.slug)
        if synthesized:
            mapping.setdefault(synthesized, post.id)
    return mapping


def anchor_groups(links: Sequence[LinkOccurrence]) -> Tuple[int, int]:
    """Return ``(unique, repeated)`` anchor counts for one post's links."""

    keys = Counter(link.anchor_text.strip().lower() for link in links)
    keys.pop("", None)
    unique = len(keys)
    return unique, max(0, len(links) - unique)


def build_silo_metrics(
    silo: Silo,
    posts: Sequence[Post],
    *,
    site_url: str | None = None,
    config: EngineConfig | None = None,
) -> SiloMetrics:
    """Aggregate every post's links into per-post metrics and a weighted adjacency list."""

    engine_config = config or load_config(None)
    totals = {"total_links": 0, "internal_links": 0, "external_links": 0, "amazon_links": 0, "affiliate_links": 0}
    rel_counts = {"nofollow": 0, "sponsored": 0, "ugc": 0, "target_blank": 0}
    distribution = {bucket: 0 for bucket in BUCKETS}

    path_map = build_post_path_map(silo, posts)
    edge_counts: Dict[EdgeKey, int] = {}
    edge_anchor_counts: Dict[EdgeKey, Dict[Tuple[str, str], int]] = {}
    edge_occurrences: Dict[EdgeKey, List[str]] = {}
    all_occurrences: List[LinkOccurrence] = []
    partial: List[Dict[str, int | str]] = []

    for post in posts:
        result = extract_links(post.content, source_post_id=post.id, site_url=site_url, config=engine_config)
        links = result.links
        all_occurrences.extend(links)

        counts = Counter()
        for link in links:
            distribution[link.position_bucket] += 1
            counts["internal_links" if link.is_internal else "external_links"] += 1
            if link.is_amazon:
                counts["amazon_links"] += 1
            if link.kind == KIND_AFFILIATE:
                counts["affiliate_links"] += 1
            if link.rel.nofollow:
                counts["nofollow"] += 1
            if link.rel.sponsored:
                counts["sponsored"] += 1
            if link.rel.ugc:
                counts["ugc"] += 1
            if link.target_blank:
                counts["target_blank"] += 1

            if link.path is None:
                continue
            if is_under_silo(link.path, silo.slug):
                counts["internal_silo_links"] += 1
            target_id = path_map.get(link.path)
            if target_id is None or target_id == post.id:
                continue
            counts["outbound_within_silo"] += 1
            key = (post.id, target_id)
            edge_counts[key] = edge_counts.get(key, 0) + 1
            groups = edge_anchor_counts.setdefault(key, {})
            group_key = (link.anchor_text.strip(), link.position_bucket)
            groups[group_key] = groups.get(group_key, 0) + 1
            edge_occurrences.setdefault(key, []).append(link.occurrence_id)

        totals["total_links"] += len(links)
        for name in ("internal_links", "external_links", "amazon_links", "affiliate_links"):
            totals[name] += counts[name]
        for name in rel_counts:
            rel_counts[name] += counts[name]

        unique, repeated = anchor_groups(links)
        partial.append(
            {
                "post_id": post.id,
                "total_links": len(links),
                "internal_links": counts["internal_links"],
                "external_links": counts["external_links"],
                "amazon_links": counts["amazon_links"],
                "affiliate_links": counts["affiliate_links"],
                "nofollow": counts["nofollow"],
                "sponsored": counts["sponsored"],
                "ugc": counts["ugc"],
                "target_blank": counts["target_blank"],
                "anchors_unique": unique,
                "anchors_repeated": repeated,
                "outbound_within_silo": counts["outbound_within_silo"],
                "internal_silo_links": counts["internal_silo_links"],
            }
        )

    adjacency: List[SiloLinkEdge] = []
    inbound: Dict[str, int] = {}
    for (source_id, target_id), count in edge_counts.items():
        adjacency.append(SiloLinkEdge(source_id=source_id, target_id=target_id, count=count))
        inbound[target_id] = inbound.get(target_id, 0) + count

    per_post = [
        SiloPostMetrics(inbound_within_silo=inbound.get(str(row["post_id"]), 0), **row)  # type: ignore[arg-type]
        for row in partial
    ]

    orphan_posts = [metric.post_id for metric in per_post if metric.inbound_within_silo == 0]
    limit = int(engine_config.get("super_linked_limit", 5))
    ranked = sorted(per_post, key=lambda metric: metric.inbound_within_silo, reverse=True)
    super_linked = [
        {"post_id": metric.post_id, "inbound": metric.inbound_within_silo}
        for metric in ranked[:limit]
    ]

    edge_anchors = {
        key: [
            EdgeAnchor(text=text, count=count, position=bucket)
            for (text, bucket), count in groups.items()
        ]
        for key, groups in edge_anchor_counts.items()
    }

    return SiloMetrics(
        totals=totals,
        rel_counts=rel_counts,
        distribution=distribution,
        per_post=per_post,
        adjacency=adjacency,
        orphan_posts=orphan_posts,
        super_linked_posts=super_linked,
        edge_anchors=edge_anchors,
        occurrences=all_occurrences,
        edge_occurrences=edge_occurrences,
    )
