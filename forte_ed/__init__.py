"""forte-ed: FoRTE ED2 ensemble runs on the PEcAn platform.

Configures and submits ED2 ensemble runs for the Forest Resilience
Threshold Experiment (FoRTE) canopy disturbance simulations at UMBS:
  - Validated run parameters and fixed PFT catalogs
  - ED2IN tags derived from biophysical toggles and a soil-moisture profile
  - PEcAn settings assembled from ordered deep-merge layers
  - Workflow registration in BETY and submission over RabbitMQ
"""

from forte_ed.ensemble import run_ed_ensemble, run_ensemble
from forte_ed.errors import (
    ConnectionFailure,
    ExternalServiceFailure,
    ForteError,
    InvalidArgument,
    IOFailure,
)
from forte_ed.types import EnsembleRun, RunParameters

__version__ = "0.1.0"

__all__ = [
    "ConnectionFailure",
    "EnsembleRun",
    "ExternalServiceFailure",
    "ForteError",
    "IOFailure",
    "InvalidArgument",
    "RunParameters",
    "run_ed_ensemble",
    "run_ensemble",
]
