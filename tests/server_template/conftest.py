"""Server-template-specific pytest configuration."""

from __future__ import annotations

from collections.abc import Callable

import pytest
import structlog

from server_template.monitoring.health import HealthConfig, HealthEvaluator, SystemMetrics

GB = 1_000_000_000


class FakeSystemMetrics(SystemMetrics):
    """Fixed counters so readiness thresholds can be exercised exactly."""

    def __init__(
        self,
        total: int = 16 * GB,
        free: int = 8 * GB,
        cores: int = 4,
        load: tuple[float, float, float] = (2.0, 1.5, 1.0),
        model: str = "Intel(R) Core(TM) i7",
        boot_time: float = 0.0,
        rss: int = 50 * 1024 * 1024,
    ) -> None:
        self.total = total
        self.free = free
        self.cores = cores
        self.load = load
        self.model = model
        self.boot = boot_time
        self.rss = rss

    def memory(self) -> tuple[int, int]:
        return self.total, self.free

    def cpu_count(self) -> int:
        return self.cores

    def cpu_model(self) -> str:
        return self.model

    def load_average(self) -> tuple[float, float, float]:
        return self.load

    def boot_time(self) -> float:
        return self.boot

    def process_memory(self) -> int:
        return self.rss


@pytest.fixture
def make_evaluator() -> Callable[..., HealthEvaluator]:
    """Factory building an evaluator over fake metrics."""

    def _make(environment: str = "development", **metrics_kwargs) -> HealthEvaluator:
        return HealthEvaluator(
            HealthConfig(environment=environment),
            metrics=FakeSystemMetrics(**metrics_kwargs),
            version="1.2.3",
        )

    return _make


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()
