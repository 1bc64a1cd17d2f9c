"""Service functions bridging the Django models and the silo engine.

The engine works on frozen snapshots, so these helpers translate model
instances into engine inputs, pick the engine configuration and the
enrichment provider from settings, and run a full analysis for a stored
silo. Views only ever call :func:`analyze_silo_record`.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from django.conf import settings

from .engine.config import EngineConfig, load_config
from .engine.enrichment import EnrichmentProvider, GeminiEnrichment, NullEnrichment
from .engine.index import analyze_silo
from .engine.types import Post as EnginePost
from .engine.types import Silo as EngineSilo
from .engine.types import SiloPost as EngineSiloPost
from .engine.types import SiloReport
from .models import Post, Silo, SiloPost

logger = logging.getLogger(__name__)


def post_to_engine(post: Post) -> EnginePost:
    """Snapshot a post; rendered HTML wins over the editor document."""

    content = post.content_html or post.content_json or None
    return EnginePost(
        id=str(post.pk),
        title=post.title,
        slug=post.slug,
        content=content,
        target_keyword=post.target_keyword or '',
        focus_keyword=post.focus_keyword or None,
        meta_description=post.meta_description or None,
        canonical_path=post.canonical_path or None,
    )


def silo_snapshot(silo: Silo) -> Tuple[EngineSilo, List[EnginePost], List[EngineSiloPost]]:
    """Return the engine view of a silo: the silo, its published posts and memberships."""

    memberships = list(
        SiloPost.objects.filter(silo=silo, post__published=True)
        .select_related('post')
        .order_by('position', 'id')
    )
    engine_silo = EngineSilo(id=str(silo.pk), name=silo.name, slug=silo.slug)
    posts = [post_to_engine(member.post) for member in memberships]
    members = [
        EngineSiloPost(
            silo_id=str(silo.pk),
            post_id=str(member.post_id),
            role=member.role,
            position=member.position,
            level=member.level,
            parent_post_id=str(member.parent_post_id) if member.parent_post_id else None,
        )
        for member in memberships
    ]
    return engine_silo, posts, members


def load_engine_config() -> EngineConfig:
    """Load the engine configuration, merging ``SILO_ENGINE_CONFIG`` when set."""

    return load_config(getattr(settings, 'SILO_ENGINE_CONFIG', None) or None)


def build_enrichment_provider() -> EnrichmentProvider | None:
    """Return the configured enrichment provider.

    ``None`` means enrichment is switched off and the report marks it as
    skipped. A missing API key yields a provider that is always unavailable.
    """

    if not getattr(settings, 'SILO_ENRICHMENT_ENABLED', False):
        return None
    api_key = getattr(settings, 'GEMINI_API_KEY', '')
    if not api_key:
        logger.warning('Enrichment is enabled but no Gemini API key is configured')
        return NullEnrichment()
    return GeminiEnrichment(
        api_key,
        model=getattr(settings, 'SILO_ENRICHMENT_MODEL', 'gemini-2.0-flash'),
        timeout=getattr(settings, 'SILO_ENRICHMENT_TIMEOUT', 20),
    )


def analyze_silo_record(silo: Silo, enrich: bool = False) -> SiloReport:
    """Run the full engine pipeline for a stored silo."""

    engine_silo, posts, members = silo_snapshot(silo)
    return analyze_silo(
        engine_silo,
        posts,
        members,
        site_url=getattr(settings, 'SITE_URL', None) or None,
        config=load_engine_config(),
        enrichment=build_enrichment_provider() if enrich else None,
    )
