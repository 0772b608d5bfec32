"""
Health Evaluation

Liveness, readiness and full diagnostic health verdicts computed from live
system metrics against environment-dependent thresholds.
"""

from __future__ import annotations

import math
import os
import platform
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Any

import psutil
import structlog

from server_template.monitoring.metrics import READINESS_CHECK, READINESS_STATUS

logger = structlog.get_logger()

DISTRIBUTION_NAME = "server-template"
UNKNOWN_VERSION = "unknown"

# Readiness thresholds
PRODUCTION_CPU_LOAD_FACTOR = 0.8
DEFAULT_CPU_LOAD_FACTOR = 0.9
MEMORY_USAGE_THRESHOLD_PERCENT = 90

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")

STATUS_OK = "ok"
STATUS_DEGRADED = "degraded"
STATUS_ERROR = "error"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_bytes(num_bytes: float) -> str:
    """
    Render a byte count in the largest unit not exceeding it.

    >>> format_bytes(1536)
    '1.50 KB'
    """
    value = float(num_bytes)
    unit_index = 0

    while value >= 1024 and unit_index < len(BYTE_UNITS) - 1:
        value /= 1024
        unit_index += 1

    return f"{value:.2f} {BYTE_UNITS[unit_index]}"


def format_uptime(seconds: float) -> str:
    """
    Render a duration as its non-zero day/hour/minute/second components.

    >>> format_uptime(3665)
    '1h 1m 5s'
    """
    total = max(0, math.floor(seconds))
    days, remainder = divmod(total, 24 * 60 * 60)
    hours, remainder = divmod(remainder, 60 * 60)
    minutes, remaining_seconds = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if remaining_seconds > 0 or not parts:
        parts.append(f"{remaining_seconds}s")

    return " ".join(parts)


def load_version() -> str:
    """Read the installed distribution version, or ``"unknown"``."""
    try:
        return package_version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        logger.warning("Failed to load version", distribution=DISTRIBUTION_NAME)
        return UNKNOWN_VERSION
    except Exception as e:
        logger.warning("Failed to load version", distribution=DISTRIBUTION_NAME, error=str(e))
        return UNKNOWN_VERSION


@dataclass(frozen=True)
class HealthConfig:
    """Thresholds selected by deployment environment."""

    environment: str = "development"
    memory_threshold_percent: float = MEMORY_USAGE_THRESHOLD_PERCENT

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cpu_load_factor(self) -> float:
        return PRODUCTION_CPU_LOAD_FACTOR if self.is_production else DEFAULT_CPU_LOAD_FACTOR

    @property
    def check_memory(self) -> bool:
        return self.is_production


@dataclass(frozen=True)
class MemoryStats:
    total: int
    free: int
    used: int
    percent_used: int


@dataclass(frozen=True)
class CpuStats:
    cores: int
    model: str
    load_avg: tuple[float, float, float]


@dataclass(frozen=True)
class SystemStats:
    platform: str
    arch: str
    python_version: str
    uptime_seconds: float


@dataclass(frozen=True)
class ProcessStats:
    pid: int
    memory_bytes: int
    uptime_seconds: float


@dataclass(frozen=True)
class HealthSnapshot:
    """Point-in-time read of memory, CPU, host and process metrics."""

    memory: MemoryStats
    cpu: CpuStats
    system: SystemStats
    process: ProcessStats

    def to_dict(self) -> dict[str, Any]:
        """Operator-facing rendering with human readable sizes and durations."""
        return {
            "memory": {
                "total": format_bytes(self.memory.total),
                "free": format_bytes(self.memory.free),
                "used": format_bytes(self.memory.used),
                "percentUsed": self.memory.percent_used,
            },
            "cpu": {
                "cores": self.cpu.cores,
                "model": self.cpu.model,
                "loadAvg": list(self.cpu.load_avg),
            },
            "system": {
                "platform": self.system.platform,
                "arch": self.system.arch,
                "version": self.system.python_version,
                "uptime": format_uptime(self.system.uptime_seconds),
            },
            "process": {
                "pid": self.process.pid,
                "memory": format_bytes(self.process.memory_bytes),
                "uptime": format_uptime(self.process.uptime_seconds),
            },
        }


@dataclass(frozen=True)
class ReadinessVerdict:
    """Readiness outcome for a single evaluation."""

    status: str
    timestamp: str
    checks: dict[str, bool] | None = None
    details: dict[str, str] | None = None
    error: str | None = None

    @property
    def is_ready(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def percent_used(total: int, used: int) -> int:
    """Rounded percentage of ``total`` in use; unknown totals count as full."""
    if total <= 0:
        return 100
    # Half-up rounding, not banker's rounding
    return math.floor(used / total * 100 + 0.5)


class SystemMetrics:
    """Reads OS and process counters through psutil."""

    def __init__(self) -> None:
        self._process = psutil.Process(os.getpid())

    def memory(self) -> tuple[int, int]:
        """Return ``(total_bytes, free_bytes)``."""
        vm = psutil.virtual_memory()
        return vm.total, vm.available

    def cpu_count(self) -> int:
        return psutil.cpu_count(logical=True) or 0

    def cpu_model(self) -> str:
        return platform.processor() or platform.machine() or "unknown"

    def load_average(self) -> tuple[float, float, float]:
        return psutil.getloadavg()

    def boot_time(self) -> float:
        return psutil.boot_time()

    def process_memory(self) -> int:
        return self._process.memory_info().rss


class HealthEvaluator:
    """
    Produces liveness, readiness and full health verdicts on demand.

    Every call reads fresh counters; nothing is cached between calls.
    """

    def __init__(
        self,
        config: HealthConfig | None = None,
        metrics: SystemMetrics | None = None,
        version: str | None = None,
    ) -> None:
        """
        Initialize health evaluator.

        Args:
            config: Environment-dependent thresholds
            metrics: Counter source (psutil-backed by default)
            version: Service version; read from package metadata when omitted
        """
        self.config = config or HealthConfig()
        self.metrics = metrics or SystemMetrics()
        self.version = version if version is not None else load_version()
        self._started = time.monotonic()

    def snapshot(self) -> HealthSnapshot:
        """Collect a HealthSnapshot from the metrics source."""
        total, free = self.metrics.memory()
        used = max(0, total - free)
        now = time.time()

        return HealthSnapshot(
            memory=MemoryStats(
                total=total,
                free=free,
                used=used,
                percent_used=percent_used(total, used),
            ),
            cpu=CpuStats(
                cores=self.metrics.cpu_count(),
                model=self.metrics.cpu_model(),
                load_avg=tuple(self.metrics.load_average()),
            ),
            system=SystemStats(
                platform=platform.system().lower(),
                arch=platform.machine(),
                python_version=platform.python_version(),
                uptime_seconds=max(0.0, now - self.metrics.boot_time()),
            ),
            process=ProcessStats(
                pid=os.getpid(),
                memory_bytes=self.metrics.process_memory(),
                uptime_seconds=time.monotonic() - self._started,
            ),
        )

    def liveness(self) -> dict[str, str]:
        """Process-is-alive signal, independent of system state."""
        return {"status": STATUS_OK, "timestamp": utc_timestamp()}

    def evaluate(self, snapshot: HealthSnapshot) -> ReadinessVerdict:
        """
        Apply readiness thresholds to a snapshot.

        CPU passes when the 1-minute load average is below
        ``cores * cpu_load_factor``. Memory is only evaluated in
        production and passes below the usage threshold.
        """
        load_1m = snapshot.cpu.load_avg[0]
        load_threshold = snapshot.cpu.cores * self.config.cpu_load_factor

        checks: dict[str, bool] = {}
        details: dict[str, str] = {}

        if self.config.check_memory:
            checks["memory"] = snapshot.memory.percent_used < self.config.memory_threshold_percent
            if not checks["memory"]:
                details["memory"] = f"{snapshot.memory.percent_used}% used"

        checks["cpu"] = load_1m < load_threshold
        if not checks["cpu"]:
            details["cpu"] = f"Load average: {load_1m:.2f}"

        is_ready = all(checks.values())

        return ReadinessVerdict(
            status=STATUS_OK if is_ready else STATUS_DEGRADED,
            timestamp=utc_timestamp(),
            checks=checks,
            details=details or None,
        )

    def readiness(self) -> ReadinessVerdict:
        """
        Can-serve-traffic signal.

        Metric collection failures are reported as ``status: error`` with
        the exception message and never propagate.
        """
        try:
            verdict = self.evaluate(self.snapshot())
        except Exception as e:
            logger.error("Readiness metrics collection failed", error=str(e))
            READINESS_STATUS.set(0)
            return ReadinessVerdict(
                status=STATUS_ERROR,
                timestamp=utc_timestamp(),
                error=str(e),
            )

        READINESS_STATUS.set(1 if verdict.is_ready else 0)
        for name, passed in (verdict.checks or {}).items():
            READINESS_CHECK.labels(check=name).set(1 if passed else 0)

        if not verdict.is_ready:
            logger.warning("Service degraded", checks=verdict.checks, details=verdict.details)

        return verdict

    def full_health(self) -> dict[str, Any]:
        """Liveness envelope plus version and the full diagnostic snapshot."""
        return {
            "status": STATUS_OK,
            "version": self.version,
            "timestamp": utc_timestamp(),
            **self.snapshot().to_dict(),
        }
