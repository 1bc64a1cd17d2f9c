"""Typed data structures used by the silo engine pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ROLE_PILLAR = "PILLAR"
ROLE_SUPPORT = "SUPPORT"
ROLE_AUX = "AUX"

BUCKET_START = "start"
BUCKET_MIDDLE = "middle"
BUCKET_END = "end"
BUCKETS = (BUCKET_START, BUCKET_MIDDLE, BUCKET_END)

KIND_INTERNAL = "internal"
KIND_AFFILIATE = "affiliate"
KIND_EXTERNAL = "external"

QUALITY_STRONG = "STRONG"
QUALITY_MEDIUM = "MEDIUM"
QUALITY_WEAK = "WEAK"

PRIORITY_HIGH = "HIGH"
PRIORITY_MEDIUM = "MEDIUM"
PRIORITY_LOW = "LOW"
PRIORITY_ORDER = {PRIORITY_HIGH: 0, PRIORITY_MEDIUM: 1, PRIORITY_LOW: 2}

ACTION_ADD_LINK = "ADD_LINK"
ACTION_REMOVE_LINK = "REMOVE_LINK"
ACTION_CHANGE_ANCHOR = "CHANGE_ANCHOR"


@dataclass(frozen=True)
class Post:
    """Read-only snapshot of a post as supplied by the content store."""

    id: str
    title: str
    slug: str
    content: Any = None
    target_keyword: str = ""
    focus_keyword: Optional[str] = None
    meta_description: Optional[str] = None
    canonical_path: Optional[str] = None


@dataclass(frozen=True)
class Silo:
    id: str
    name: str
    slug: str


@dataclass(frozen=True)
class SiloPost:
    """Membership of a post in a silo with its hierarchy role."""

    silo_id: str
    post_id: str
    role: str
    position: int = 0
    level: Optional[int] = None
    parent_post_id: Optional[str] = None


@dataclass(frozen=True)
class LinkRel:
    nofollow: bool = False
    sponsored: bool = False
    ugc: bool = False


@dataclass(frozen=True)
class LinkOccurrence:
    """A single hyperlink found in a post, projected at analysis time."""

    occurrence_id: str
    source_post_id: str
    href: str
    anchor_text: str
    position_bucket: str
    is_internal: bool
    is_amazon: bool
    rel: LinkRel
    target_blank: bool
    kind: str
    path: Optional[str]
    start: int
    end: int
    context: str = ""


@dataclass(frozen=True)
class ExtractionResult:
    links: List[LinkOccurrence]
    text_length: int
    text: str = ""


@dataclass(frozen=True)
class SiloLinkEdge:
    source_id: str
    target_id: str
    count: int


@dataclass(frozen=True)
class EdgeAnchor:
    """Anchor text used on an edge, grouped by text and position bucket."""

    text: str
    count: int
    position: str
    score: Optional[float] = None


@dataclass(frozen=True)
class SiloPostMetrics:
    post_id: str
    total_links: int
    internal_links: int
    external_links: int
    amazon_links: int
    affiliate_links: int
    nofollow: int
    sponsored: int
    ugc: int
    target_blank: int
    anchors_unique: int
    anchors_repeated: int
    inbound_within_silo: int
    outbound_within_silo: int
    internal_silo_links: int


@dataclass(frozen=True)
class SiloMetrics:
    """Aggregated link graph for one silo."""

    totals: Dict[str, int]
    rel_counts: Dict[str, int]
    distribution: Dict[str, int]
    per_post: List[SiloPostMetrics]
    adjacency: List[SiloLinkEdge]
    orphan_posts: List[str]
    super_linked_posts: List[Dict[str, Any]]
    edge_anchors: Dict[Tuple[str, str], List[EdgeAnchor]] = field(default_factory=dict)
    occurrences: List[LinkOccurrence] = field(default_factory=list)
    edge_occurrences: Dict[Tuple[str, str], List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class EdgeSemanticAnalysis:
    source_id: str
    target_id: str
    count: int
    quality: str
    score: int
    anchor_score: float
    content_overlap: float
    anchors: List[EdgeAnchor]
    issues: List[str]
    suggestions: List[str]


@dataclass(frozen=True)
class OrphanPost:
    post_id: str
    title: str
    reason: str


@dataclass(frozen=True)
class ExcessiveOutbound:
    post_id: str
    title: str
    outbound_count: int
    threshold: int


@dataclass(frozen=True)
class MissingPillarLink:
    post_id: str
    title: str
    role: str


@dataclass(frozen=True)
class WeakSemanticLink:
    source_id: str
    target_id: str
    quality: str
    issues: List[str]


@dataclass(frozen=True)
class OffTopicPost:
    post_id: str
    title: str
    coherence_score: float


@dataclass(frozen=True)
class StructureViolation:
    rule_id: str
    severity: str
    message: str
    current_value: int
    expected_value: int


@dataclass(frozen=True)
class SiloHealthMetrics:
    orphan_posts: List[OrphanPost] = field(default_factory=list)
    excessive_outbound: List[ExcessiveOutbound] = field(default_factory=list)
    missing_pillar_links: List[MissingPillarLink] = field(default_factory=list)
    weak_semantic_links: List[WeakSemanticLink] = field(default_factory=list)
    off_topic_posts: List[OffTopicPost] = field(default_factory=list)
    pillar_missing_supports: List[MissingPillarLink] = field(default_factory=list)
    structure_violations: List[StructureViolation] = field(default_factory=list)
    pillar_id: Optional[str] = None


@dataclass(frozen=True)
class SiloAction:
    type: str
    priority: str
    post_id: str
    description: str
    current_issue: str
    target_post_id: Optional[str] = None
    suggested_anchor: Optional[str] = None


@dataclass(frozen=True)
class SiloHealthSummary:
    health_score: int
    status: str
    counts: Dict[str, int]


@dataclass(frozen=True)
class EnrichmentItem:
    """One internal link occurrence as sent to the enrichment collaborator."""

    occurrence_id: str
    source_title: str
    target_title: str
    anchor_text: str
    context_snippet: str
    source_focus_keywords: Optional[List[str]] = None
    target_focus_keywords: Optional[List[str]] = None


@dataclass(frozen=True)
class LinkSuggestion:
    occurrence_id: str
    suggested_anchors: List[str] = field(default_factory=list)
    suggestion_note: Optional[str] = None
    intent_match: Optional[float] = None
    coherence_note: Optional[str] = None
    remove_link_if: Optional[str] = None


@dataclass(frozen=True)
class EnrichmentResult:
    link_suggestions: List[LinkSuggestion]


@dataclass(frozen=True)
class SiloReport:
    """Everything one analysis run produces for a silo."""

    silo_id: str
    metrics: SiloMetrics
    analyses: List[EdgeSemanticAnalysis]
    health: SiloHealthMetrics
    actions: List[SiloAction]
    summary: SiloHealthSummary
    enrichment_status: str = "skipped"
    link_suggestions: List[LinkSuggestion] = field(default_factory=list)
