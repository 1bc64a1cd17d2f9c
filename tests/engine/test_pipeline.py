"""End-to-end pipeline tests."""

from __future__ import annotations

import json

from silos.engine.index import analyze_silo, report_to_dict
from silos.engine.types import ROLE_PILLAR, EnrichmentResult, LinkSuggestion

from .conftest import SILO, link, make_member, make_post


def _silo():
    posts = [
        make_post("a", "Guia de carrinhos", "<p>Tudo sobre " + link("b", "carrinho compacto") + "</p>", slug="guia-de-carrinhos"),
        make_post("b", "Carrinho compacto", "<p>Volte ao " + link("guia-de-carrinhos", "guia de carrinhos") + "</p>"),
        make_post("c", "Cadeirinha", "<p>Sem links aqui.</p>"),
        make_post("x", "Fora do silo", "<p>" + link("b", "compacto") + "</p>"),
    ]
    members = [make_member("a", ROLE_PILLAR), make_member("b", position=1), make_member("c", position=2)]
    return posts, members


class StaticEnrichment:
    def __init__(self):
        self.batches = []

    def suggest(self, batch):
        self.batches.append(batch)
        return EnrichmentResult(
            link_suggestions=[LinkSuggestion(occurrence_id=item.occurrence_id, suggested_anchors=["novo"]) for item in batch.links]
        )


class BrokenEnrichment:
    def suggest(self, batch):
        return None


class CrashingEnrichment:
    def suggest(self, batch):
        raise RuntimeError("provider crashed")


def _core(payload):
    return {key: value for key, value in payload.items() if key not in {"enrichment_status", "link_suggestions"}}


def test_report_is_deterministic(engine_config):
    posts, members = _silo()
    first = json.dumps(report_to_dict(analyze_silo(SILO, posts, members, config=engine_config)), sort_keys=True)
    second = json.dumps(report_to_dict(analyze_silo(SILO, posts, members, config=engine_config)), sort_keys=True)
    assert first == second


def test_only_silo_members_are_analysed(engine_config):
    posts, members = _silo()
    report = analyze_silo(SILO, posts, members, config=engine_config)

    assert [metric.post_id for metric in report.metrics.per_post] == ["a", "b", "c"]
    assert sorted((edge.source_id, edge.target_id) for edge in report.metrics.adjacency) == [("a", "b"), ("b", "a")]
    assert report.enrichment_status == "skipped"
    assert report.link_suggestions == []


def test_report_dict_uses_string_edge_keys(engine_config):
    posts, members = _silo()
    payload = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config))

    assert set(payload["metrics"]["edge_anchors"]) == {"a->b", "b->a"}
    assert payload["metrics"]["edge_occurrences"]["b->a"] == ["b:0"]
    assert payload["summary"]["status"] in {"OK", "WARNING", "CRITICAL"}
    assert payload["actions"][0]["priority"] == "HIGH"


def test_enrichment_never_changes_scores(engine_config):
    posts, members = _silo()
    plain = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config))
    provider = StaticEnrichment()
    enriched = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config, enrichment=provider))

    assert enriched["enrichment_status"] == "success"
    assert [item["occurrence_id"] for item in enriched["link_suggestions"]] == ["a:0", "b:0"]
    assert _core(enriched) == _core(plain)
    assert len(provider.batches) == 1


def test_failed_enrichment_keeps_core_report(engine_config):
    posts, members = _silo()
    plain = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config))
    failed = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config, enrichment=BrokenEnrichment()))

    assert failed["enrichment_status"] == "failed"
    assert failed["link_suggestions"] == []
    assert _core(failed) == _core(plain)


def test_raising_enrichment_is_reported_as_failed(engine_config):
    posts, members = _silo()
    plain = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config))
    crashed = report_to_dict(analyze_silo(SILO, posts, members, config=engine_config, enrichment=CrashingEnrichment()))

    assert crashed["enrichment_status"] == "failed"
    assert crashed["link_suggestions"] == []
    assert _core(crashed) == _core(plain)


def test_memberships_of_other_silos_select_no_posts(engine_config):
    posts, _ = _silo()
    members = [make_member("a", ROLE_PILLAR, silo_id="other"), make_member("b", silo_id="other")]
    report = analyze_silo(SILO, posts, members, config=engine_config)

    assert report.metrics.per_post == []
    assert report.metrics.adjacency == []


def test_without_memberships_every_post_is_analysed(engine_config):
    posts, _ = _silo()
    report = analyze_silo(SILO, posts, [], config=engine_config)

    assert [metric.post_id for metric in report.metrics.per_post] == ["a", "b", "c", "x"]


def test_empty_silo_produces_empty_report(engine_config):
    report = analyze_silo(SILO, [], [], config=engine_config)

    assert report.metrics.adjacency == []
    assert report.analyses == []
    assert report.actions == []
    assert report.metrics.totals["total_links"] == 0
    json.dumps(report_to_dict(report), sort_keys=True)


def test_malformed_post_does_not_abort_analysis(engine_config):
    posts, members = _silo()
    posts[2] = make_post("c", "Cadeirinha", 42)
    report = analyze_silo(SILO, posts, members, config=engine_config)
    per_post = {metric.post_id: metric for metric in report.metrics.per_post}
    assert per_post["c"].total_links == 0
    assert len(report.analyses) == 2
