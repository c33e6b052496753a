"""
Phoenix/OpenTelemetry Configuration

Loads observability settings from environment variables.
Tracing is off unless PHOENIX_ENABLED is set.
"""

import os
from dataclasses import dataclass

DEFAULT_COLLECTOR_ENDPOINT = "http://localhost:6006/v1/traces"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


@dataclass
class ObservabilityConfig:
    """Configuration for Phoenix observability.

    Environment Variables:
        PHOENIX_ENABLED: Enable tracing (default: false)
        PHOENIX_PROJECT_NAME: Project name in Phoenix UI (default: kb-chat)
        PHOENIX_COLLECTOR_ENDPOINT: OTLP/HTTP endpoint (default: local Phoenix)
        PHOENIX_CAPTURE_LLM_CONTENT: Attach prompts/replies to spans (default: false)

    PRIVACY WARNING:
        Setting PHOENIX_CAPTURE_LLM_CONTENT=true exports raw user messages and
        knowledge-base excerpts to the collector.
    """

    enabled: bool = False
    project_name: str = "kb-chat"
    collector_endpoint: str = DEFAULT_COLLECTOR_ENDPOINT
    capture_llm_content: bool = False

    @classmethod
    def from_env(cls) -> "ObservabilityConfig":
        """Load config from environment variables."""
        return cls(
            enabled=_env_flag("PHOENIX_ENABLED"),
            project_name=os.environ.get("PHOENIX_PROJECT_NAME", "kb-chat"),
            collector_endpoint=os.environ.get("PHOENIX_COLLECTOR_ENDPOINT") or DEFAULT_COLLECTOR_ENDPOINT,
            capture_llm_content=_env_flag("PHOENIX_CAPTURE_LLM_CONTENT"),
        )


# Global config singleton
_config: ObservabilityConfig | None = None


def get_config() -> ObservabilityConfig:
    """Get the global observability config (lazy-loaded from env)."""
    global _config
    if _config is None:
        _config = ObservabilityConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
