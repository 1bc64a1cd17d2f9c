"""Link extraction from post content.

Posts arrive either as rendered HTML or as the editor's structured document
(a ProseMirror-style tree of ``type``/``content``/``marks``/``attrs``
nodes). Both are walked in reading order while a running character offset
is kept, so each link can be placed in the start, middle or end third of
the document.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag  # type: ignore
from bs4.element import PreformattedString  # type: ignore

from .config import EngineConfig, load_config
from .paths import classify_href, is_amazon_href, resolve_path
from .text import collapse_whitespace
from .types import (
    BUCKET_END,
    BUCKET_MIDDLE,
    BUCKET_START,
    KIND_INTERNAL,
    ExtractionResult,
    LinkOccurrence,
    LinkRel,
)

logger = logging.getLogger(__name__)

IGNORED_PREFIXES = ("mailto:", "tel:", "javascript:")

# Text inside these tags is never visible in the rendered post.
INVISIBLE_TAGS = {"script", "style", "template", "noscript"}

SPONSORED_REL = LinkRel(nofollow=True, sponsored=True, ugc=False)


@dataclass
class _RawLink:
    href: str
    text: str
    rel: LinkRel
    target_blank: bool
    start: int
    end: int
    merge_key: str = ""


@dataclass
class _Stream:
    """Accumulates visible text and raw links while walking a document."""

    pieces: List[str] = field(default_factory=list)
    offset: int = 0
    links: List[_RawLink] = field(default_factory=list)

    def add_text(self, text: str) -> None:
        if text:
            self.pieces.append(text)
            self.offset += len(text)

    @property
    def text(self) -> str:
        return "".join(self.pieces)


def safe_href(href: Any) -> Optional[str]:
    """Return the trimmed href, or ``None`` when it does not point to a page."""

    if not isinstance(href, str):
        return None
    trimmed = href.strip()
    if not trimmed:
        return None
    lowered = trimmed.lower()
    if lowered.startswith("#") or lowered.startswith(IGNORED_PREFIXES):
        return None
    return trimmed


def parse_rel(value: Any) -> LinkRel:
    """Parse a whitespace-separated rel attribute (or bs4's list form)."""

    if isinstance(value, (list, tuple)):
        raw = " ".join(str(item) for item in value)
    else:
        raw = str(value or "")
    tokens = {token.lower() for token in raw.split()}
    return LinkRel(
        nofollow="nofollow" in tokens,
        sponsored="sponsored" in tokens,
        ugc="ugc" in tokens,
    )


def is_blank_target(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == "_blank"


def position_bucket(offset: int, total: int) -> str:
    """Place ``offset`` in the start, middle or end third of ``total`` characters."""

    if total < 3:
        return BUCKET_START
    if offset * 3 < total:
        return BUCKET_START
    if offset * 3 < total * 2:
        return BUCKET_MIDDLE
    return BUCKET_END


def _walk_html(node: Any, stream: _Stream) -> None:
    if isinstance(node, NavigableString):
        if not isinstance(node, PreformattedString):
            stream.add_text(str(node))
        return
    if not isinstance(node, Tag):
        return
    name = (node.name or "").lower()
    if name in INVISIBLE_TAGS:
        return

    if name == "a":
        start = stream.offset
        for child in node.children:
            _walk_html(child, stream)
        href = safe_href(node.get("href"))
        if href:
            stream.links.append(
                _RawLink(
                    href=href,
                    text=node.get_text(),
                    rel=parse_rel(node.get("rel")),
                    target_blank=is_blank_target(node.get("target")),
                    start=start,
                    end=stream.offset,
                )
            )
        return

    for child in node.children:
        _walk_html(child, stream)


def _extract_from_html(html: str) -> _Stream:
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception:
        # Fallback to html.parser if lxml isn't installed
        soup = BeautifulSoup(html, "html.parser")

    stream = _Stream()
    _walk_html(soup, stream)
    return stream


def _append_segment(stream: _Stream, href: Any, text: str, rel: LinkRel, target_blank: bool) -> None:
    start = stream.offset
    stream.add_text(text)
    end = stream.offset

    safe = safe_href(href)
    if not safe:
        return

    merge_key = "|".join(
        [
            safe,
            "1" if target_blank else "0",
            "1" if rel.nofollow else "0",
            "1" if rel.sponsored else "0",
            "1" if rel.ugc else "0",
        ]
    )
    last = stream.links[-1] if stream.links else None
    if last is not None and last.merge_key == merge_key and last.end == start:
        last.text += text
        last.end = end
        return

    stream.links.append(
        _RawLink(
            href=safe,
            text=text,
            rel=rel,
            target_blank=target_blank,
            start=start,
            end=end,
            merge_key=merge_key,
        )
    )


def _attr(attrs: Dict[str, Any], *names: str, default: str = "") -> str:
    for name in names:
        value = attrs.get(name)
        if isinstance(value, str):
            return value
    return default


def _walk_document(node: Any, stream: _Stream, active_marks: List[Any]) -> None:
    if isinstance(node, list):
        for child in node:
            _walk_document(child, stream, active_marks)
        return
    if not isinstance(node, dict):
        return

    node_type = node.get("type")
    attrs = node.get("attrs") if isinstance(node.get("attrs"), dict) else {}

    if node_type == "mention":
        label = _attr(attrs, "label", "text")
        _append_segment(stream, attrs.get("href"), label, LinkRel(), False)
        return

    if node_type == "affiliateCta":
        _append_segment(stream, _attr(attrs, "url", "href"), _attr(attrs, "label", default="CTA"), SPONSORED_REL, True)
        return

    if node_type in ("affiliateProductCard", "affiliateProduct"):
        label = _attr(attrs, "title", default="Produto")
        _append_segment(stream, _attr(attrs, "url", "href"), label, SPONSORED_REL, True)
        return

    if node_type == "cta_button":
        _append_segment(
            stream,
            _attr(attrs, "href", "url"),
            _attr(attrs, "label", default="CTA"),
            parse_rel(attrs.get("rel")),
            is_blank_target(attrs.get("target")),
        )
        return

    marks = node.get("marks") if isinstance(node.get("marks"), list) else active_marks
    if node_type == "text":
        text = node.get("text") if isinstance(node.get("text"), str) else ""
        link_mark = next(
            (mark for mark in marks if isinstance(mark, dict) and mark.get("type") == "link"),
            None,
        )
        if link_mark is None:
            stream.add_text(text)
            return
        mark_attrs = link_mark.get("attrs") if isinstance(link_mark.get("attrs"), dict) else {}
        _append_segment(
            stream,
            mark_attrs.get("href"),
            text,
            parse_rel(mark_attrs.get("rel")),
            is_blank_target(mark_attrs.get("target")),
        )
        return

    content = node.get("content")
    if isinstance(content, list):
        for child in content:
            _walk_document(child, stream, marks)


def _extract_from_document(doc: Any) -> _Stream:
    stream = _Stream()
    _walk_document(doc, stream, [])
    return stream


def _as_document(content: str) -> Any:
    stripped = content.strip()
    if not stripped or stripped[0] not in "{[":
        return None
    try:
        parsed = json.loads(stripped)
    except ValueError:
        return None
    return parsed if isinstance(parsed, (dict, list)) else None


def _context(text: str, start: int, end: int, window: int) -> str:
    return collapse_whitespace(text[max(0, start - window):end + window])


def extract_links(
    content: Any,
    *,
    source_post_id: str = "",
    site_url: str | None = None,
    config: EngineConfig | None = None,
) -> ExtractionResult:
    """Return every link in ``content`` along with the visible text stream.

    ``content`` may be an HTML string, a structured document (dict or list)
    or a JSON string holding one. Content that cannot be parsed yields an
    empty result instead of raising, so one broken post never aborts a
    silo-wide analysis.
    """

    if not content:
        return ExtractionResult(links=[], text_length=0, text="")

    engine_config = config or load_config(None)
    try:
        if isinstance(content, str):
            document = _as_document(content)
            stream = _extract_from_document(document) if document is not None else _extract_from_html(content)
        elif isinstance(content, (dict, list)):
            stream = _extract_from_document(content)
        else:
            logger.warning("Unsupported content type %s for post %s", type(content).__name__, source_post_id)
            return ExtractionResult(links=[], text_length=0, text="")
    except Exception:
        logger.warning("Failed to parse content for post %s", source_post_id, exc_info=True)
        return ExtractionResult(links=[], text_length=0, text="")

    text = stream.text
    total = stream.offset
    window = int(engine_config.get("context_window", 100))
    affiliate_domains = engine_config.phrases("affiliate_domains")
    amazon_domains = engine_config.phrases("amazon_domains")

    links: List[LinkOccurrence] = []
    for index, raw in enumerate(stream.links):
        kind = classify_href(raw.href, site_url, affiliate_domains)
        links.append(
            LinkOccurrence(
                occurrence_id=f"{source_post_id}:{index}",
                source_post_id=source_post_id,
                href=raw.href,
                anchor_text=raw.text.strip(),
                position_bucket=position_bucket(raw.start, total),
                is_internal=kind == KIND_INTERNAL,
                is_amazon=is_amazon_href(raw.href, amazon_domains),
                rel=raw.rel,
                target_blank=raw.target_blank,
                kind=kind,
                path=resolve_path(raw.href, site_url),
                start=raw.start,
                end=raw.end,
                context=_context(text, raw.start, raw.end, window),
            )
        )

    return ExtractionResult(links=links, text_length=total, text=text)
