"""
Request Client Configuration

Frozen configuration objects for the simulated backend.
Changes require a new config instance.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import os


def _env_ms(env: Mapping[str, str], name: str, default_s: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default_s
    try:
        return max(0.0, float(raw) / 1000.0)
    except ValueError:
        raise ValueError(f"{name} must be a number of milliseconds, got {raw!r}")


@dataclass(frozen=True)
class LatencyConfig:
    """
    Artificial network delay, in seconds.

    Every request waits ``interceptor_delay`` and then the per-method
    latency before it resolves. Uploads wait ``upload_latency`` only.
    """
    interceptor_delay: float = 0.2
    get_latency: float = 0.4
    post_latency: float = 0.5
    upload_latency: float = 1.0

    def for_method(self, method: str) -> float:
        return self.get_latency if method == "GET" else self.post_latency

    @classmethod
    def none(cls) -> LatencyConfig:
        return cls(interceptor_delay=0.0, get_latency=0.0, post_latency=0.0, upload_latency=0.0)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> LatencyConfig:
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            interceptor_delay=_env_ms(env, "BLOG_CLIENT_INTERCEPTOR_MS", defaults.interceptor_delay),
            get_latency=_env_ms(env, "BLOG_CLIENT_GET_LATENCY_MS", defaults.get_latency),
            post_latency=_env_ms(env, "BLOG_CLIENT_POST_LATENCY_MS", defaults.post_latency),
            upload_latency=_env_ms(env, "BLOG_CLIENT_UPLOAD_LATENCY_MS", defaults.upload_latency),
        )


@dataclass(frozen=True)
class ClientConfig:
    """Unified configuration for the request client."""
    latency: Optional[LatencyConfig] = None
    history_size: int = 100
    summary_length: int = 120
    checkin_points: int = 10

    def __post_init__(self):
        if self.latency is None:
            object.__setattr__(self, "latency", LatencyConfig())
        if self.history_size < 0:
            raise ValueError("history_size must be >= 0")
        if self.summary_length < 1:
            raise ValueError("summary_length must be >= 1")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> ClientConfig:
        return cls(latency=LatencyConfig.from_env(env))
