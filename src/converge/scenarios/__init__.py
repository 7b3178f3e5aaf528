"""Scenario orchestration: deployment bookkeeping, harness, catalog, runner."""

from converge.scenarios.catalog import Scenario, get_scenario, list_scenarios, scenario
from converge.scenarios.deployment import Deployment, random_dns_name
from converge.scenarios.harness import ConvergenceHarness
from converge.scenarios.results import OverallStatus, ScenarioResult, StepResult
from converge.scenarios.runner import ScenarioRunner

__all__ = [
    "ConvergenceHarness",
    "Deployment",
    "OverallStatus",
    "Scenario",
    "ScenarioResult",
    "ScenarioRunner",
    "StepResult",
    "get_scenario",
    "list_scenarios",
    "random_dns_name",
    "scenario",
]
