"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DedupConfig:
    """Deduplication settings for the core pipeline.

    max_entries caps the fingerprint set; 0 keeps every fingerprint for the
    lifetime of the process.
    """

    max_entries: int = 0


@dataclass(frozen=True)
class PipelineConfig:
    """Per-event pipeline settings consumed by the processor."""

    system_prompt: str
    backend_timeout: float = 0.0
    ordered_turns: bool = False


@dataclass(frozen=True)
class IngestionConfig:
    """Filtering and retry settings for the ingestion loop."""

    private_message_type: str = "private"
    retry_delay: float = 1.0


@dataclass(frozen=True)
class WorkerConfig:
    """Sizing for the admission queue and worker pool."""

    count: int = 8
    queue_size: int = 200
