"""Shared fixtures for silo engine tests."""

from __future__ import annotations

from typing import Any

import pytest

from silos.engine.config import load_config
from silos.engine.types import ROLE_SUPPORT, Post, Silo, SiloPost

SILO = Silo(id="s1", name="Mobilidade", slug="mobilidade")


@pytest.fixture()
def engine_config():
    """Provide a mutable copy of the default engine configuration."""

    return load_config(None)


def make_post(
    post_id: str,
    title: str,
    content: Any = None,
    *,
    slug: str | None = None,
    target_keyword: str = "",
    focus_keyword: str | None = None,
    meta_description: str | None = None,
    canonical_path: str | None = None,
) -> Post:
    return Post(
        id=post_id,
        title=title,
        slug=slug or post_id,
        content=content,
        target_keyword=target_keyword,
        focus_keyword=focus_keyword,
        meta_description=meta_description,
        canonical_path=canonical_path,
    )


def make_member(post_id: str, role: str = ROLE_SUPPORT, *, position: int = 0, silo_id: str = "s1") -> SiloPost:
    return SiloPost(silo_id=silo_id, post_id=post_id, role=role, position=position)


def link(slug: str, anchor: str, silo_slug: str = "mobilidade") -> str:
    return f'<a href="/{silo_slug}/{slug}">{anchor}</a>'
