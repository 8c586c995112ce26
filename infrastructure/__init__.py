"""Infrastructure layer — operational concerns for the waveform analysis service.

Modules:
    metrics     Prometheus metrics registry (analysis runs, latency, renders).
"""
