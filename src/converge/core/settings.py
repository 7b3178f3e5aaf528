"""
Centralized settings for the convergence harness.

:class:`ConvergeSettings` is the single validated, cached source of every
tunable the harness reads: poll budgets, kubectl invocation, naming
conventions of the system under test, and logging. All fields can be set
via ``CONVERGE_*`` environment variables or a ``.env`` file, e.g.
``CONVERGE_DEPLOY_TIMEOUT_SECONDS=900``.

The two named poll budgets are derived rather than stored:

- :meth:`ConvergeSettings.poll_spec`: deployment-scale wait
  (``deploy_timeout_seconds`` / ``poll_interval_seconds``)
- :meth:`ConvergeSettings.stability_spec`: short hold window
  (``consistent_duration_seconds`` / ``consistent_interval_seconds``)

Tags:
    configuration, settings, pydantic, caching, poll-budget
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from converge.core.errors import InvalidConfigError
from converge.polling.spec import PollSpec

DEFAULT_PEER_FILE = (
    "/opt/splunk/etc/apps/splunk_monitoring_console/local/"
    "splunk_monitoring_console_assets.conf"
)

# log_format -> configure_logging(json_format=...); "auto" follows the TTY
LOG_FORMATS: dict[str, bool | None] = {"console": False, "json": True, "auto": None}


class ConvergeSettings(BaseSettings):
    """Harness configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CONVERGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Poll budgets ─────────────────────────────────────────────
    deploy_timeout_seconds: float = Field(
        default=1500.0, description="Upper bound for any deployment-scale wait"
    )
    poll_interval_seconds: float = Field(default=5.0)
    consistent_duration_seconds: float = Field(
        default=2.0, description="Hold window for steady-state checks"
    )
    consistent_interval_seconds: float = Field(default=0.2)

    # ── kubectl ──────────────────────────────────────────────────
    kubectl_binary: str = Field(default="kubectl")
    kubectl_timeout_seconds: int = Field(default=60)
    kubeconfig: str | None = Field(default=None)
    namespace: str | None = Field(
        default=None, description="Fixed namespace; generated per scenario when unset"
    )

    # ── System under test ────────────────────────────────────────
    product_prefix: str = Field(default="splunk")
    api_version: str = Field(default="enterprise.splunk.com/v1alpha3")
    aggregator_match: str = Field(
        default="monitoring-console",
        description="Substring identifying aggregator pods in `kubectl get pods`",
    )
    aggregator_deployment: str = Field(default="splunk-default-monitoring-console")
    peer_file: str = Field(default=DEFAULT_PEER_FILE)
    peer_key: str = Field(default="configuredPeers")

    # ── Behaviour ────────────────────────────────────────────────
    skip_teardown: bool = Field(default=False)
    trace_pods: bool = Field(
        default=True, description="Log the namespace pod table while waiting on phases"
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @model_validator(mode="after")
    def _validate_budgets(self) -> ConvergeSettings:
        # Constructing the specs runs the PollSpec invariants.
        self.poll_spec()
        self.stability_spec()
        if self.log_format not in LOG_FORMATS:
            raise InvalidConfigError("log_format", self.log_format)
        return self

    def poll_spec(self) -> PollSpec:
        """Deployment-scale wait budget."""
        return PollSpec(
            timeout=self.deploy_timeout_seconds,
            interval=self.poll_interval_seconds,
        )

    def stability_spec(self) -> PollSpec:
        """Steady-state hold window."""
        return PollSpec(
            timeout=self.consistent_duration_seconds,
            interval=self.consistent_interval_seconds,
        )


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, ConvergeSettings] = {}


def get_settings(*, _force_reload: bool = False) -> ConvergeSettings:
    """Load, validate, and cache a :class:`ConvergeSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = ConvergeSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "ConvergeSettings",
    "DEFAULT_PEER_FILE",
    "LOG_FORMATS",
    "clear_settings_cache",
    "get_settings",
]
