"""
Configuration module for the ALB listener reconciler.

Loads configuration from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional

from listener.annotations import DEFAULT_ANNOTATION_PREFIX


@dataclass
class AWSConfig:
    """ELBv2 client configuration."""

    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    max_attempts: int = 3
    connect_timeout: int = 10  # seconds
    read_timeout: int = 30  # seconds

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        max_attempts = int(os.getenv("AWS_MAX_ATTEMPTS", "3"))
        if max_attempts < 1:
            raise ValueError("AWS_MAX_ATTEMPTS must be at least 1")

        return cls(
            region=os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or None,
            endpoint_url=os.getenv("AWS_ENDPOINT_URL") or None,
            max_attempts=max_attempts,
            connect_timeout=int(os.getenv("AWS_CONNECT_TIMEOUT", "10")),
            read_timeout=int(os.getenv("AWS_READ_TIMEOUT", "30")),
        )


@dataclass
class ReconcilerConfig:
    """Listener reconciliation settings."""

    reconcile_timeout: float = 120.0  # seconds, per reconciliation pass
    log_level: str = "INFO"
    annotation_prefix: str = DEFAULT_ANNOTATION_PREFIX

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        timeout = float(os.getenv("RECONCILE_TIMEOUT", "120"))
        if timeout <= 0:
            raise ValueError("RECONCILE_TIMEOUT must be positive")

        return cls(
            reconcile_timeout=timeout,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            annotation_prefix=os.getenv("ANNOTATION_PREFIX", DEFAULT_ANNOTATION_PREFIX),
        )


@dataclass
class Config:
    """Main configuration object."""

    aws: AWSConfig
    reconciler: ReconcilerConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            aws=AWSConfig.from_env(),
            reconciler=ReconcilerConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(aws=AWSConfig(), reconciler=ReconcilerConfig())


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
