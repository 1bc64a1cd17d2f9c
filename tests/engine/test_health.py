"""Health analyzer and action plan tests."""

from __future__ import annotations

from silos.engine.graph import build_silo_metrics
from silos.engine.health import (
    build_silo_health,
    generate_silo_actions,
    summarize_silo_health,
    validate_structure,
)
from silos.engine.semantics import ISSUE_GENERIC_ANCHOR, analyze_all_edges
from silos.engine.types import ROLE_PILLAR, ROLE_SUPPORT

from .conftest import SILO, link, make_member, make_post


def _mobilidade():
    posts = [
        make_post(
            "a",
            "Guia de carrinhos",
            "<p>Tudo sobre carrinhos de bebe e passeios.</p>",
            slug="guia-de-carrinhos",
        ),
        make_post(
            "b",
            "Carrinho compacto",
            "<p>Viagem com mala e bagagem no aeroporto, " + link("guia-de-carrinhos", "clique aqui") + "</p>",
        ),
        make_post("c", "Cadeirinha veicular", "<p>Texto sem nenhum link.</p>"),
    ]
    members = [
        make_member("a", ROLE_PILLAR, position=0),
        make_member("b", ROLE_SUPPORT, position=1),
        make_member("c", ROLE_SUPPORT, position=2),
    ]
    return posts, members


def _diagnose(posts, members, config):
    metrics = build_silo_metrics(SILO, posts, config=config)
    analyses = analyze_all_edges(metrics.adjacency, posts, metrics.edge_anchors, config)
    health = build_silo_health(posts, members, metrics, analyses, config)
    return metrics, analyses, health


def test_three_post_silo_scenario(engine_config):
    posts, members = _mobilidade()
    metrics, analyses, health = _diagnose(posts, members, engine_config)

    assert [(edge.source_id, edge.target_id, edge.count) for edge in metrics.adjacency] == [("b", "a", 1)]
    (analysis,) = analyses
    assert analysis.anchor_score == 20
    assert analysis.quality == "WEAK"
    assert ISSUE_GENERIC_ANCHOR in analysis.issues

    assert [orphan.post_id for orphan in health.orphan_posts] == ["c"]
    assert health.orphan_posts[0].reason == "no internal links (in or out)"
    assert [missing.post_id for missing in health.missing_pillar_links] == ["c"]
    assert [weak.source_id for weak in health.weak_semantic_links] == ["b"]
    assert health.off_topic_posts == []
    assert health.pillar_id == "a"

    actions = generate_silo_actions(health, members, posts, engine_config)
    orphan_action = actions[0]
    assert orphan_action.type == "ADD_LINK"
    assert orphan_action.priority == "HIGH"
    assert orphan_action.post_id == "c"
    assert orphan_action.target_post_id == "a"
    assert not any(action.post_id == "b" and action.type == "ADD_LINK" for action in actions)


def test_actions_are_ordered_by_priority(engine_config):
    posts, members = _mobilidade()
    _, _, health = _diagnose(posts, members, engine_config)

    actions = generate_silo_actions(health, members, posts, engine_config)

    assert [action.priority for action in actions] == ["HIGH", "HIGH", "MEDIUM", "LOW", "LOW"]
    missing = actions[1]
    assert missing.suggested_anchor == "Guia de carrinhos"
    change = actions[2]
    assert change.type == "CHANGE_ANCHOR"
    assert (change.post_id, change.target_post_id) == ("b", "a")
    assert change.current_issue == ISSUE_GENERIC_ANCHOR
    assert [(action.post_id, action.target_post_id) for action in actions[3:]] == [("a", "b"), ("a", "c")]


def test_summary_for_three_post_silo(engine_config):
    posts, members = _mobilidade()
    _, analyses, health = _diagnose(posts, members, engine_config)

    summary = summarize_silo_health(health, analyses)

    assert summary.health_score == 60
    assert summary.status == "WARNING"
    assert summary.counts["orphan_posts"] == 1
    assert summary.counts["weak_edges"] == 1


def test_excessive_outbound_links(engine_config):
    targets = [make_post(f"t{index}", f"Destino {index}") for index in range(9)]
    hub_html = "<p>" + " ".join(link(post.slug, f"destino numero {index}") for index, post in enumerate(targets)) + "</p>"
    hub = make_post("hub", "Post central", hub_html)
    posts = [hub, *targets]
    members = [make_member("hub", ROLE_PILLAR)] + [make_member(post.id) for post in targets]

    _, _, health = _diagnose(posts, members, engine_config)

    (excess,) = health.excessive_outbound
    assert (excess.post_id, excess.outbound_count, excess.threshold) == ("hub", 9, 8)
    actions = generate_silo_actions(health, members, posts, engine_config)
    removals = [action for action in actions if action.type == "REMOVE_LINK"]
    assert len(removals) == 1
    assert removals[0].priority == "MEDIUM"
    assert removals[0].post_id == "hub"
    assert "9" in removals[0].description and "8" in removals[0].description


def test_missing_pillar_disables_pillar_rules(engine_config):
    posts, _ = _mobilidade()
    members = [make_member(post.id) for post in posts]

    _, analyses, health = _diagnose(posts, members, engine_config)

    assert health.pillar_id is None
    assert health.missing_pillar_links == []
    assert health.pillar_missing_supports == []
    assert any(violation.rule_id == "MIN_PILLARS" for violation in health.structure_violations)
    actions = generate_silo_actions(health, members, posts, engine_config)
    orphan_action = next(action for action in actions if action.post_id == "c")
    assert orphan_action.target_post_id is None
    summary = summarize_silo_health(health, analyses)
    assert summary.health_score <= 60


def test_first_pillar_wins(engine_config):
    posts, members = _mobilidade()
    members = members + [make_member("c", ROLE_PILLAR, position=3)]
    _, _, health = _diagnose(posts, members, engine_config)
    assert health.pillar_id == "a"


def test_structure_limits(engine_config):
    members = [make_member("p", ROLE_PILLAR)] + [make_member(f"s{index}") for index in range(13)]
    rule_ids = [violation.rule_id for violation in validate_structure(members, engine_config)]
    assert rule_ids == ["MAX_SUPPORTS"]

    members = [make_member("p", ROLE_PILLAR)] + [make_member(f"s{index}") for index in range(3)]
    assert validate_structure(members, engine_config) == []


def test_empty_silo_is_healthy_but_without_pillar(engine_config):
    _, analyses, health = _diagnose([], [], engine_config)
    assert health.orphan_posts == []
    assert generate_silo_actions(health, [], [], engine_config) == []
    summary = summarize_silo_health(health, analyses)
    assert summary.health_score == 60
    assert summary.status == "WARNING"
