"""Structural health rules for a silo and the remediation plan derived from them."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .config import EngineConfig, load_config
from .types import (
    ACTION_ADD_LINK,
    ACTION_CHANGE_ANCHOR,
    ACTION_REMOVE_LINK,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    PRIORITY_ORDER,
    QUALITY_WEAK,
    ROLE_PILLAR,
    ROLE_SUPPORT,
    EdgeSemanticAnalysis,
    ExcessiveOutbound,
    MissingPillarLink,
    OrphanPost,
    Post,
    SiloAction,
    SiloHealthMetrics,
    SiloHealthSummary,
    SiloMetrics,
    SiloPost,
    StructureViolation,
    WeakSemanticLink,
)

ORPHAN_REASON = "no internal links (in or out)"


def _role(member: SiloPost) -> str:
    return str(member.role or "").upper()


def find_pillar(silo_posts: Sequence[SiloPost]) -> Optional[SiloPost]:
    """Return the first PILLAR membership; later ones are ignored."""

    return next((member for member in silo_posts if _role(member) == ROLE_PILLAR), None)


def validate_structure(silo_posts: Sequence[SiloPost], config: EngineConfig | None = None) -> List[StructureViolation]:
    """Check pillar and support counts against the configured limits."""

    engine_config = config or load_config(None)
    limits = engine_config.get("structure", {})
    pillars = sum(1 for member in silo_posts if _role(member) == ROLE_PILLAR)
    supports = sum(1 for member in silo_posts if _role(member) == ROLE_SUPPORT)
    min_pillars = int(limits.get("min_pillars", 1))
    max_pillars = int(limits.get("max_pillars", 1))
    min_supports = int(limits.get("min_supports", 3))
    max_supports = int(limits.get("max_supports", 12))

    violations: List[StructureViolation] = []
    if pillars < min_pillars:
        violations.append(
            StructureViolation("MIN_PILLARS", "error", f"Silo needs at least {min_pillars} pillar post", pillars, min_pillars)
        )
    if pillars > max_pillars:
        violations.append(
            StructureViolation("MAX_PILLARS", "error", f"Silo should have at most {max_pillars} pillar post", pillars, max_pillars)
        )
    if supports < min_supports:
        violations.append(
            StructureViolation(
                "MIN_SUPPORTS",
                "warning",
                f"Silo should have between {min_supports} and {max_supports} support posts",
                supports,
                min_supports,
            )
        )
    if supports > max_supports:
        violations.append(
            StructureViolation("MAX_SUPPORTS", "warning", f"Too many support posts (ideal: {max_supports})", supports, max_supports)
        )
    return violations


def build_silo_health(
    posts: Sequence[Post],
    silo_posts: Sequence[SiloPost],
    metrics: SiloMetrics,
    analyses: Sequence[EdgeSemanticAnalysis],
    config: EngineConfig | None = None,
) -> SiloHealthMetrics:
    """Run every structural rule independently and collect what they flag."""

    engine_config = config or load_config(None)
    post_map = {post.id: post for post in posts}
    metrics_map = {metric.post_id: metric for metric in metrics.per_post}
    max_outbound = int(engine_config.threshold("max_outbound_links"))

    orphan_posts: List[OrphanPost] = []
    excessive_outbound: List[ExcessiveOutbound] = []
    for post in posts:
        metric = metrics_map.get(post.id)
        if metric is None:
            continue
        if metric.inbound_within_silo == 0 and metric.outbound_within_silo == 0:
            orphan_posts.append(OrphanPost(post_id=post.id, title=post.title, reason=ORPHAN_REASON))
        if metric.outbound_within_silo > max_outbound:
            excessive_outbound.append(
                ExcessiveOutbound(
                    post_id=post.id,
                    title=post.title,
                    outbound_count=metric.outbound_within_silo,
                    threshold=max_outbound,
                )
            )

    missing_pillar_links: List[MissingPillarLink] = []
    pillar_missing_supports: List[MissingPillarLink] = []
    pillar = find_pillar(silo_posts)
    pillar_id = pillar.post_id if pillar else None
    if pillar_id is not None:
        linking_to_pillar = {edge.source_id for edge in metrics.adjacency if edge.target_id == pillar_id}
        linked_from_pillar = {edge.target_id for edge in metrics.adjacency if edge.source_id == pillar_id}
        for member in silo_posts:
            if _role(member) != ROLE_SUPPORT or member.post_id == pillar_id:
                continue
            post = post_map.get(member.post_id)
            if post is None:
                continue
            if member.post_id not in linking_to_pillar:
                missing_pillar_links.append(MissingPillarLink(post_id=post.id, title=post.title, role=ROLE_SUPPORT))
            if pillar_id in post_map and member.post_id not in linked_from_pillar:
                pillar_missing_supports.append(MissingPillarLink(post_id=post.id, title=post.title, role=ROLE_SUPPORT))

    weak_semantic_links = [
        WeakSemanticLink(
            source_id=analysis.source_id,
            target_id=analysis.target_id,
            quality=analysis.quality,
            issues=list(analysis.issues),
        )
        for analysis in analyses
        if analysis.quality == QUALITY_WEAK
    ]

    return SiloHealthMetrics(
        orphan_posts=orphan_posts,
        excessive_outbound=excessive_outbound,
        missing_pillar_links=missing_pillar_links,
        weak_semantic_links=weak_semantic_links,
        # Off-topic detection has no scoring model yet; the field stays empty.
        off_topic_posts=[],
        pillar_missing_supports=pillar_missing_supports,
        structure_violations=validate_structure(silo_posts, engine_config),
        pillar_id=pillar_id,
    )


def _pillar_anchor(pillar_id: Optional[str], posts: Sequence[Post]) -> Optional[str]:
    if pillar_id is None:
        return None
    for post in posts:
        if post.id == pillar_id:
            return post.focus_keyword or post.target_keyword or post.title or None
    return None


def generate_silo_actions(
    health: SiloHealthMetrics,
    silo_posts: Sequence[SiloPost],
    posts: Sequence[Post] = (),
    config: EngineConfig | None = None,
) -> List[SiloAction]:
    """Turn flagged items into actions, sorted HIGH, MEDIUM, LOW (stable)."""

    engine_config = config or load_config(None)
    max_outbound = int(engine_config.threshold("max_outbound_links"))
    pillar = find_pillar(silo_posts)
    pillar_id = pillar.post_id if pillar else None
    pillar_anchor = _pillar_anchor(pillar_id, posts)

    actions: List[SiloAction] = []

    for orphan in health.orphan_posts:
        actions.append(
            SiloAction(
                type=ACTION_ADD_LINK,
                priority=PRIORITY_HIGH,
                post_id=orphan.post_id,
                target_post_id=pillar_id if pillar_id != orphan.post_id else None,
                description="Orphan post: add a link to the pillar or to other support posts",
                current_issue=orphan.reason,
            )
        )

    for excess in health.excessive_outbound:
        actions.append(
            SiloAction(
                type=ACTION_REMOVE_LINK,
                priority=PRIORITY_MEDIUM,
                post_id=excess.post_id,
                description=f"Reduce from {excess.outbound_count} to ~{max_outbound} internal links",
                current_issue=f"Too many internal links ({excess.outbound_count} > {excess.threshold})",
            )
        )

    for missing in health.missing_pillar_links:
        actions.append(
            SiloAction(
                type=ACTION_ADD_LINK,
                priority=PRIORITY_HIGH,
                post_id=missing.post_id,
                target_post_id=pillar_id,
                description="Add 1-2 links to the pillar post",
                suggested_anchor=pillar_anchor,
                current_issue="Support post does not reinforce the pillar",
            )
        )

    for weak in health.weak_semantic_links:
        actions.append(
            SiloAction(
                type=ACTION_CHANGE_ANCHOR,
                priority=PRIORITY_MEDIUM,
                post_id=weak.source_id,
                target_post_id=weak.target_id,
                description="Improve the link anchor",
                current_issue=weak.issues[0] if weak.issues else "Link with low semantic quality",
            )
        )

    if pillar_id is not None:
        for uncovered in health.pillar_missing_supports:
            actions.append(
                SiloAction(
                    type=ACTION_ADD_LINK,
                    priority=PRIORITY_LOW,
                    post_id=pillar_id,
                    target_post_id=uncovered.post_id,
                    description="Link the pillar to this support post",
                    current_issue="Pillar does not link to every support post",
                )
            )

    return sorted(actions, key=lambda action: PRIORITY_ORDER[action.priority])


def summarize_silo_health(
    health: SiloHealthMetrics,
    analyses: Sequence[EdgeSemanticAnalysis],
) -> SiloHealthSummary:
    """Condense a diagnosis into a 0-100 health score and a status."""

    score = 100
    if health.pillar_id is None:
        score -= 40
    score -= 5 * len(health.orphan_posts)
    if health.missing_pillar_links:
        score -= min(30, 10 * len(health.missing_pillar_links))
    if health.pillar_missing_supports:
        score -= min(20, 5 * len(health.pillar_missing_supports))

    ceiling = 100
    weak_count = len(health.weak_semantic_links)
    if analyses and weak_count * 100 >= 15 * len(analyses):
        ceiling = min(ceiling, 85)
    if health.pillar_missing_supports:
        ceiling = min(ceiling, 70)
    if health.missing_pillar_links:
        ceiling = min(ceiling, 60)

    score = max(0, min(score, ceiling, 100))
    if score < 50:
        status = "CRITICAL"
    elif score < 80:
        status = "WARNING"
    else:
        status = "OK"

    counts: Dict[str, int] = {
        "edges": len(analyses),
        "weak_edges": weak_count,
        "orphan_posts": len(health.orphan_posts),
        "excessive_outbound": len(health.excessive_outbound),
        "missing_pillar_links": len(health.missing_pillar_links),
        "pillar_missing_supports": len(health.pillar_missing_supports),
        "structure_violations": len(health.structure_violations),
    }
    return SiloHealthSummary(health_score=score, status=status, counts=counts)
