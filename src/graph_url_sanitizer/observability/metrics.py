from __future__ import annotations

from prometheus_client import Counter

requests_translated_total = Counter(
    "graph_requests_translated_total",
    "Number of graph data requests rewritten into a safe URL.",
    labelnames=("protocol",),
)
requests_rejected_total = Counter(
    "graph_requests_rejected_total",
    "Number of graph data requests rejected before any network call.",
    labelnames=("code",),
)
responses_normalized_total = Counter(
    "graph_responses_normalized_total",
    "Number of fetched payloads turned into graph data.",
    labelnames=("protocol",),
)
responses_rejected_total = Counter(
    "graph_responses_rejected_total",
    "Number of fetched payloads (or fetches) that produced an error instead of data.",
    labelnames=("code",),
)
