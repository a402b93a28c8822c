"""Host metrics and the per-tick overload sample."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import psutil

from ricky_api.core.exceptions import DegenerateComputationError

BYTES_PER_MIB = 1024 * 1024


class ConnectionRegistry(Protocol):
    def active_connection_count(self) -> int: ...


class HostMetricsSource(Protocol):
    def logical_core_count(self) -> int: ...

    def resident_memory_bytes(self) -> int: ...


class PsutilHostMetrics:
    """Reads core count and resident memory of the current process via psutil."""

    def __init__(self, process: Optional[psutil.Process] = None) -> None:
        self._process = process or psutil.Process()

    def logical_core_count(self) -> int:
        count = psutil.cpu_count(logical=True)
        if count is None:
            raise RuntimeError("psutil could not determine the logical core count")
        return count

    def resident_memory_bytes(self) -> int:
        return self._process.memory_info().rss


@dataclass(frozen=True)
class OverloadSample:
    connection_count: int
    core_count: int
    resident_memory_mib: float
    load_ratio: float
    overloaded: bool
    sampled_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sampled_at"] = self.sampled_at.isoformat()
        return data


def compute_load_ratio(connection_count: int, core_count: int, resident_memory_mib: float) -> float:
    """
    Return ``connection_count / core_count / resident_memory_mib``.

    Raises :class:`DegenerateComputationError` when a denominator is not
    positive or the result is not finite.
    """
    if core_count <= 0:
        raise DegenerateComputationError(f"core count must be positive, got {core_count}")
    if not resident_memory_mib > 0:
        raise DegenerateComputationError(f"resident memory must be positive, got {resident_memory_mib} MiB")

    ratio = connection_count / core_count / resident_memory_mib
    if not math.isfinite(ratio):
        raise DegenerateComputationError(f"load ratio is not finite ({ratio})")
    return ratio


def build_sample(
    connection_count: int,
    core_count: int,
    resident_memory_bytes: int,
    threshold: float,
) -> OverloadSample:
    """Turn raw metric readings into an :class:`OverloadSample`."""
    resident_memory_mib = resident_memory_bytes / BYTES_PER_MIB
    ratio = compute_load_ratio(connection_count, core_count, resident_memory_mib)
    return OverloadSample(
        connection_count=connection_count,
        core_count=core_count,
        resident_memory_mib=resident_memory_mib,
        load_ratio=ratio,
        overloaded=ratio > threshold,
    )
