"""Infrastructure layer — cross-cutting helpers for the pitch analyser.

Modules:
    metrics     Prometheus counters for analysis ticks and API requests.
"""
