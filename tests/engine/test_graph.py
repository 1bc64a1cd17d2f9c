"""Graph builder tests."""

from __future__ import annotations

import itertools

from silos.engine.graph import anchor_groups, build_post_path_map, build_silo_metrics
from silos.engine.types import LinkOccurrence, LinkRel

from .conftest import SILO, link, make_post


def _posts():
    pillar = make_post(
        "a",
        "Guia de carrinhos",
        "<p>Pillar text " + link("b", "carrinho compacto") + " and " + link("guia-de-carrinhos", "self") + "</p>",
        slug="guia-de-carrinhos",
    )
    support = make_post(
        "b",
        "Carrinho compacto",
        "<p>" + link("guia-de-carrinhos", "guia de carrinhos") + " middle text "
        + link("guia-de-carrinhos", "guia de carrinhos") + ' <a href="https://wikipedia.org/x">wiki</a></p>',
    )
    canonical = make_post(
        "c",
        "Carrinho de passeio",
        "<p>" + link("b", "compacto") + ' <a href="/outro/pagina">outro</a>'
        ' <a href="https://amzn.to/x" rel="sponsored nofollow">oferta</a></p>',
        canonical_path="/guias/passeio/",
    )
    lonely = make_post("d", "Sem links", '<p>Linking to <a href="/guias/passeio">passeio</a></p>')
    return [pillar, support, canonical, lonely]


def _edges(metrics):
    return sorted((edge.source_id, edge.target_id, edge.count) for edge in metrics.adjacency)


def test_adjacency_counts_and_self_links():
    metrics = build_silo_metrics(SILO, _posts())

    assert _edges(metrics) == [
        ("a", "b", 1),
        ("b", "a", 2),
        ("c", "b", 1),
        ("d", "c", 1),
    ]
    per_post = {metric.post_id: metric for metric in metrics.per_post}
    assert per_post["a"].outbound_within_silo == 1
    assert per_post["a"].internal_links == 2
    assert per_post["b"].inbound_within_silo == 2
    assert per_post["a"].inbound_within_silo == 2
    assert per_post["c"].inbound_within_silo == 1
    assert per_post["d"].inbound_within_silo == 0


def test_totals_and_rel_counts():
    metrics = build_silo_metrics(SILO, _posts())

    assert metrics.totals["total_links"] == 9
    assert metrics.totals["external_links"] == 2
    assert metrics.totals["internal_links"] == 7
    assert metrics.totals["amazon_links"] == 1
    assert metrics.totals["affiliate_links"] == 1
    assert metrics.rel_counts["nofollow"] == 1
    assert metrics.rel_counts["sponsored"] == 1
    assert sum(metrics.distribution.values()) == 9


def test_edges_do_not_depend_on_post_order():
    baseline = build_silo_metrics(SILO, _posts())
    expected_inbound = {metric.post_id: metric.inbound_within_silo for metric in baseline.per_post}

    for ordering in itertools.permutations(_posts()):
        metrics = build_silo_metrics(SILO, list(ordering))
        assert _edges(metrics) == _edges(baseline)
        inbound = {metric.post_id: metric.inbound_within_silo for metric in metrics.per_post}
        assert inbound == expected_inbound


def test_orphans_are_posts_without_inbound_links():
    metrics = build_silo_metrics(SILO, _posts())
    assert metrics.orphan_posts == ["d"]


def test_super_linked_posts_ranked_by_inbound(engine_config):
    engine_config.raw["super_linked_limit"] = 2
    metrics = build_silo_metrics(SILO, _posts(), config=engine_config)

    assert metrics.super_linked_posts == [
        {"post_id": "a", "inbound": 2},
        {"post_id": "b", "inbound": 2},
    ]


def test_edge_anchors_grouped_by_text_and_position():
    metrics = build_silo_metrics(SILO, _posts())

    anchors = metrics.edge_anchors[("b", "a")]
    assert sum(anchor.count for anchor in anchors) == 2
    assert {anchor.text for anchor in anchors} == {"guia de carrinhos"}
    assert {anchor.position for anchor in anchors} == {"start", "middle"}
    assert metrics.edge_occurrences[("b", "a")] == ["b:0", "b:1"]


def test_canonical_path_wins_and_collisions_are_deterministic():
    first = make_post("1", "One", slug="shared")
    second = make_post("2", "Two", slug="other", canonical_path="/mobilidade/shared")

    assert build_post_path_map(SILO, [first, second])["/mobilidade/shared"] == "2"
    assert build_post_path_map(SILO, [second, first])["/mobilidade/shared"] == "2"

    twin_a = make_post("7", "Twin A", slug="twin")
    twin_b = make_post("3", "Twin B", slug="twin")
    assert build_post_path_map(SILO, [twin_a, twin_b])["/mobilidade/twin"] == "3"
    assert build_post_path_map(SILO, [twin_b, twin_a])["/mobilidade/twin"] == "3"


def test_internal_silo_links_only_count_silo_paths():
    metrics = build_silo_metrics(SILO, _posts())
    per_post = {metric.post_id: metric for metric in metrics.per_post}
    assert per_post["c"].internal_silo_links == 1
    assert per_post["c"].internal_links == 2


def test_anchor_groups_are_case_insensitive():
    def occurrence(text):
        return LinkOccurrence(
            occurrence_id="x",
            source_post_id="p",
            href="/x",
            anchor_text=text,
            position_bucket="start",
            is_internal=True,
            is_amazon=False,
            rel=LinkRel(),
            target_blank=False,
            kind="internal",
            path="/x",
            start=0,
            end=1,
        )

    assert anchor_groups([occurrence("Guia"), occurrence("guia"), occurrence("Outro")]) == (2, 1)
    assert anchor_groups([occurrence(""), occurrence("Guia")]) == (1, 1)
    assert anchor_groups([]) == (0, 0)
