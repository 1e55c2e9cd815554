"""Metricas Prometheus para sessoes de streaming.

Metricas definidas:
- voxstream_active_sessions: Gauge de sessoes abertas
- voxstream_sessions_total: Counter de sessoes encerradas por outcome (closed, failed)
- voxstream_session_duration_seconds: Duracao total de sessoes encerradas
- voxstream_audio_bytes_total: Bytes de audio consumidos
- voxstream_chunks_processed_total: Chunks entregues ao recognizer
- voxstream_chunk_faults_total: Chunks que falharam e foram ignorados
- voxstream_emissions_total: Textos reconhecidos enviados ao cliente
- voxstream_release_failures_total: Falhas ao liberar recognizers
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

active_sessions = Gauge(
    "voxstream_active_sessions",
    "Number of open streaming recognition sessions",
)

sessions_total = Counter(
    "voxstream_sessions_total",
    "Streaming sessions terminated, by outcome",
    ["outcome"],
)

session_duration_seconds = Histogram(
    "voxstream_session_duration_seconds",
    "Total duration of terminated streaming sessions",
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800),
)

audio_bytes_total = Counter(
    "voxstream_audio_bytes_total",
    "Audio bytes consumed by recognition sessions",
)

chunks_processed_total = Counter(
    "voxstream_chunks_processed_total",
    "Audio chunks fed to recognizers",
)

chunk_faults_total = Counter(
    "voxstream_chunk_faults_total",
    "Audio chunks whose processing failed and was skipped",
)

emissions_total = Counter(
    "voxstream_emissions_total",
    "Recognized utterance texts sent to clients",
)

release_failures_total = Counter(
    "voxstream_release_failures_total",
    "Failures while releasing per-session recognizers",
)
