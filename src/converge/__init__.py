"""
converge: convergence verification for operator-managed clusters.

Drives lifecycle operations (deploy, scale) against custom resources,
waits for their phase to settle, asserts it holds, and checks that the
monitoring aggregator's peer list matches what was deployed.

Packages:
    core        errors, structured logging, settings
    polling     wait-until and hold-steady primitives
    cluster     phases, resources, kubectl-backed clients
    membership  peer artifact parsing and reconciliation
    scenarios   harness, scenario catalog, runner
    cli         ``converge`` command line
"""

__version__ = "0.1.0"
