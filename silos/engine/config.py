"""Configuration helpers for the silo engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml


@dataclass(frozen=True)
class EngineConfig:
    """Typed wrapper around the engine configuration dictionary."""

    raw: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.raw.get(key, default)

    def threshold(self, name: str) -> float:
        thresholds = self.raw.get("thresholds", {})
        return thresholds.get(name, DEFAULTS["thresholds"][name])

    def terms(self, use: str) -> int:
        """Return how many top terms to keep for ``default``, ``short`` or ``content`` comparisons."""

        counts = self.raw.get("term_counts", {})
        return int(counts.get(use, DEFAULTS["term_counts"].get(use, 10)))

    def phrases(self, key: str) -> List[str]:
        values = self.raw.get(key, [])
        return [str(value).strip().lower() for value in values if str(value).strip()]


DEFAULTS: Dict[str, Any] = {
    "super_linked_limit": 5,
    "context_window": 100,
    "min_term_length": 4,
    "term_counts": {
        "default": 10,
        "short": 5,
        "content": 15,
    },
    "thresholds": {
        "max_outbound_links": 8,
        "strong_score": 70,
        "medium_score": 40,
        "weak_anchor_score": 30,
        "low_alignment_overlap": 20,
        "max_links_per_edge": 3,
    },
    "anchor_scoring": {
        "generic_score": 20,
        "base_score": 50,
        "focus_keyword_bonus": 30,
        "target_keyword_bonus": 25,
        "title_overlap_weight": 0.2,
        "descriptive_bonus": 10,
        "descriptive_min_words": 2,
        "descriptive_max_words": 6,
    },
    "blend": {
        "anchor": 0.7,
        "content": 0.3,
    },
    "structure": {
        "min_pillars": 1,
        "max_pillars": 1,
        "min_supports": 3,
        "max_supports": 12,
    },
    "generic_anchors": [
        "clique aqui",
        "saiba mais",
        "leia mais",
        "veja mais",
        "veja aqui",
        "saiba tudo",
        "confira",
        "acesse",
        "novo post",
        "here",
        "read more",
        "click here",
    ],
    "stopwords": [
        "o", "a", "os", "as", "um", "uma", "de", "da", "do", "em", "para", "com",
        "por", "e", "ou", "que", "se", "sao", "como", "mais", "na", "no",
        "pelo", "pela", "sobre", "entre", "quando", "onde", "qual", "quais",
        "esse", "essa", "este", "esta", "isso", "isto", "seus", "suas", "muito",
        "the", "an", "and", "or", "of", "in", "to", "for", "is", "are",
        "with", "that", "this", "from", "your", "have", "will", "what",
        "when", "which", "they", "been", "into", "about", "more",
    ],
    "affiliate_domains": [
        "amazon",
        "amzn.to",
        "amzn.com",
        "a.co",
    ],
    "amazon_domains": [
        "amazon",
        "amzn.to",
        "amzn.com",
        "a.co",
    ],
    "enrichment": {
        "snippet_length": 240,
        "source_keywords": 5,
        "target_keywords": 10,
    },
}


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load configuration from YAML, merging with defaults."""

    data: Dict[str, Any] = copy.deepcopy(DEFAULTS)

    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as stream:
            user = yaml.safe_load(stream) or {}
        merge_into(data, user)

    return EngineConfig(data)


def merge_into(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base dict."""

    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merge_into(base[key], value)
        else:
            base[key] = value
