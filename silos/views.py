"""JSON views exposing silo analysis reports."""

from __future__ import annotations

from dataclasses import asdict

from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from .engine.index import report_to_dict
from .models import Silo
from .services import analyze_silo_record

TRUTHY = {'1', 'true', 'yes', 'on'}


def wants_enrichment(request: HttpRequest) -> bool:
    return request.GET.get('enrich', '').strip().lower() in TRUTHY


@require_GET
def silo_report(request: HttpRequest, slug: str) -> JsonResponse:
    """Return the full analysis report for a silo.

    ``?enrich=1`` asks the enrichment collaborator for anchor suggestions;
    the deterministic parts of the report are identical either way.
    """

    silo = get_object_or_404(Silo, slug=slug)
    report = analyze_silo_record(silo, enrich=wants_enrichment(request))
    payload = report_to_dict(report)
    payload['silo'] = {'name': silo.name, 'slug': silo.slug}
    return JsonResponse(payload)


@require_GET
def silo_actions(request: HttpRequest, slug: str) -> JsonResponse:
    """Return only the prioritised action plan and health summary for a silo."""

    silo = get_object_or_404(Silo, slug=slug)
    report = analyze_silo_record(silo)
    return JsonResponse(
        {
            'silo': {'name': silo.name, 'slug': silo.slug},
            'summary': asdict(report.summary),
            'actions': [asdict(action) for action in report.actions],
        }
    )
