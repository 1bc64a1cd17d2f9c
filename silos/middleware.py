from __future__ import annotations

import time
from typing import Any, Callable

from django.conf import settings
from django.core.cache import caches
from django.http import HttpRequest, HttpResponse, JsonResponse

DEFAULT_THROTTLE_LIMIT = 10  # enrichment requests
DEFAULT_THROTTLE_WINDOW = 60  # seconds
DEFAULT_THROTTLE_KEY_PREFIX = 'silos:throttle'


class SlidingWindowRateThrottle:
    """Sliding-window limiter for report requests that call the enrichment service.

    Only requests to a route listed in ``THROTTLED_ROUTES`` that ask for
    enrichment (``?enrich=1``) are counted; plain reports are never limited.
    """

    def __init__(
        self,
        get_response: Callable[[HttpRequest], HttpResponse],
        *,
        limit: int | None = None,
        window: int | None = None,
        cache_alias: str = 'default',
        key_prefix: str | None = None,
    ) -> None:
        self.get_response = get_response
        self.limit = limit or getattr(settings, 'THROTTLE_LIMIT', DEFAULT_THROTTLE_LIMIT)
        self.window = window or getattr(settings, 'THROTTLE_WINDOW', DEFAULT_THROTTLE_WINDOW)
        self.cache = caches[cache_alias]
        self.key_prefix = key_prefix or getattr(settings, 'THROTTLE_KEY_PREFIX', DEFAULT_THROTTLE_KEY_PREFIX)

    def __call__(self, request: HttpRequest) -> HttpResponse:
        return self.get_response(request)

    def process_view(
        self,
        request: HttpRequest,
        view_func: Callable[..., HttpResponse],
        view_args: Any,
        view_kwargs: Any,
    ) -> HttpResponse | None:
        # resolver_match is only populated once URL resolution has run.
        resolved = getattr(request, 'resolver_match', None)
        if resolved is None or request.method != 'GET':
            return None

        route_name = f"{resolved.namespace}:{resolved.url_name}" if resolved.namespace else resolved.url_name
        if route_name not in getattr(settings, 'THROTTLED_ROUTES', []):
            return None
        if request.GET.get('enrich', '').strip().lower() not in {'1', 'true', 'yes', 'on'}:
            return None

        cache_key = self._build_cache_key(request, route_name)
        now = time.time()
        bucket = self.cache.get(cache_key, [])
        bucket = [timestamp for timestamp in bucket if timestamp > now - self.window]

        if len(bucket) >= self.limit:
            return self._reject(request)

        bucket.append(now)
        self.cache.set(cache_key, bucket, timeout=self.window)
        return None

    def _build_cache_key(self, request: HttpRequest, route_name: str) -> str:
        ip = self._get_client_ip(request)
        return f"{self.key_prefix}:{route_name}:{ip}"

    def _get_client_ip(self, request: HttpRequest) -> str:
        header = getattr(settings, 'THROTTLE_IP_HEADER', 'HTTP_X_FORWARDED_FOR')
        if header in request.META:
            return request.META[header].split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '0.0.0.0')

    def _reject(self, request: HttpRequest) -> JsonResponse:
        payload = {
            'detail': 'Enrichment rate limit exceeded. Try again shortly.',
            'route': getattr(request.resolver_match, 'view_name', 'unknown'),
        }
        return JsonResponse(payload, status=429)


def sliding_window_rate_throttle(get_response: Callable[[HttpRequest], HttpResponse]) -> SlidingWindowRateThrottle:
    return SlidingWindowRateThrottle(get_response)
