"""Database models for the silos app.

Posts are the content store the engine reads from: each post keeps its
rendered HTML and/or the editor's JSON document. A silo groups posts
through ``SiloPost`` memberships that carry the hierarchy role (one pillar,
several supports, optional auxiliary posts).
"""

from __future__ import annotations

from django.db import models

from .engine.types import ROLE_AUX, ROLE_PILLAR, ROLE_SUPPORT


class Silo(models.Model):
    """A topical cluster of posts served under ``/<slug>/``."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return self.name


class Post(models.Model):
    """A published article whose links are analysed."""

    title = models.CharField(max_length=300)
    slug = models.SlugField(max_length=255, db_index=True)
    content_html = models.TextField(blank=True)
    content_json = models.JSONField(null=True, blank=True)
    target_keyword = models.CharField(max_length=200, blank=True)
    focus_keyword = models.CharField(max_length=200, blank=True)
    meta_description = models.TextField(blank=True)
    canonical_path = models.CharField(max_length=500, blank=True)
    published = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return self.title


class SiloPost(models.Model):
    """Membership of a post in a silo."""

    ROLE_CHOICES = [
        (ROLE_PILLAR, 'Pillar'),
        (ROLE_SUPPORT, 'Support'),
        (ROLE_AUX, 'Auxiliary'),
    ]

    silo = models.ForeignKey(Silo, on_delete=models.CASCADE, related_name='memberships')
    post = models.ForeignKey(Post, on_delete=models.CASCADE, related_name='memberships')
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_SUPPORT)
    position = models.PositiveIntegerField(default=0)
    level = models.PositiveSmallIntegerField(null=True, blank=True)
    parent_post = models.ForeignKey(
        Post,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='child_memberships',
    )

    class Meta:
        unique_together = ('silo', 'post')
        ordering = ['position', 'id']

    def __str__(self) -> str:  # pragma: no cover - convenience display
        return f"{self.silo} · {self.post} ({self.role})"
