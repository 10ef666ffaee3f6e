"""Configure and submit a FoRTE ED2 ensemble run through PEcAn.

Usage:
    from forte_ed import run_ed_ensemble

    run = run_ed_ensemble("2000-06-01", "2020-12-31",
                          ensemble_size=50, multiple_scatter=True)
    run.workflow_id
    run.settings['model']['ed2in_tags']

Order of operations (every failure aborts the whole call):
  1. validate parameters             InvalidArgument, nothing touched yet
  2. load soil profile               IOFailure, before any platform call
  3. connect (unless injected)       ConnectionFailure, before any write
  4. model lookup, workflow insert   ExternalServiceFailure
  5. assemble + check settings       InvalidArgument
  6. submit                          ExternalServiceFailure; the workflow
                                     row from step 4 is left in place
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from forte_ed.config import ForteConfig, default_config
from forte_ed.ed2in import build_ed2in_tags, build_notes
from forte_ed.pfts import select_pft_list
from forte_ed.platform import PecanPlatform, Platform
from forte_ed.settings import build_settings, check_settings
from forte_ed.soil import load_soil_profile
from forte_ed.types import (
    MODEL_NAME,
    MODEL_REVISION,
    SITE_ID,
    DateLike,
    EnsembleRun,
    RunParameters,
)
from forte_ed.utils import timer

logger = logging.getLogger(__name__)


def run_ensemble(
    params: RunParameters,
    platform: Optional[Platform] = None,
    config: Optional[ForteConfig] = None,
    soil_path: Optional[Union[str, Path]] = None,
) -> EnsembleRun:
    """Build settings for ``params``, register the workflow and submit it.

    Args:
        params: Validated run parameters.
        platform: PEcAn access. If None, connect with default settings.
        config: Deployment configuration. Defaults to default_config().
        soil_path: Soil-moisture CSV. Defaults to the configured path.

    Returns:
        EnsembleRun with the new workflow id and the submitted settings.
    """
    config = config or default_config()
    notes = build_notes(params)
    pft_list = select_pft_list(params.pft_type)

    soil_path = Path(soil_path) if soil_path is not None else config.paths.soil_moisture_path()
    profile = load_soil_profile(soil_path)
    ed2in_tags = build_ed2in_tags(params, profile)

    if platform is None:
        platform = PecanPlatform.connect(config)

    model_id = platform.lookup_model(MODEL_NAME, MODEL_REVISION)
    workflow = platform.insert_workflow(
        SITE_ID, model_id,
        start_date=params.start_date,
        end_date=params.end_date,
        notes=notes,
    )

    settings = build_settings(workflow, params, pft_list, ed2in_tags, config)
    check_settings(settings)

    with timer("submit"):
        platform.submit(settings)
    logger.info(
        "FoRTE run submitted: workflow %s, %d ensemble member(s), pft_type=%s",
        workflow.id, params.ensemble_size, params.pft_type,
    )
    return EnsembleRun(workflow_id=workflow.id, settings=settings)


def run_ed_ensemble(
    start_date: DateLike,
    end_date: DateLike,
    ensemble_size: int = 1,
    pft_type: str = "umbs",
    platform: Optional[Platform] = None,
    nowait: bool = True,
    crown_model: bool = False,
    n_limit_ps: bool = False,
    n_limit_soil: bool = False,
    multiple_scatter: bool = False,
    trait_plasticity: bool = False,
    config: Optional[ForteConfig] = None,
    soil_path: Optional[Union[str, Path]] = None,
) -> EnsembleRun:
    """Run an ED2 ensemble for the FoRTE experiment using PEcAn.

    Args:
        start_date: First day of run.
        end_date: Last day of run.
        ensemble_size: Number of ensemble members.
        pft_type: PFT definitions, "umbs" or "standard" (case-insensitive).
        platform: PEcAn access. If None, create a connection using
            default settings.
        nowait: Tell PEcAn not to wait for other workflows to finish
            before starting this one.
        crown_model: Use the finite canopy radius model.
        n_limit_ps: Nitrogen-limited photosynthesis.
        n_limit_soil: Nitrogen-limited soil respiration.
        multiple_scatter: Multiple-scattering canopy RTM instead of
            two-stream.
        trait_plasticity: Enable the trait plasticity scheme.
        config: Deployment configuration.
        soil_path: Override for the soil-moisture dataset path.

    Returns:
        EnsembleRun(workflow_id, settings).

    Raises:
        InvalidArgument: Bad parameters (no side effects).
        IOFailure: Soil dataset missing or malformed (no side effects).
        ConnectionFailure: Database unreachable (no side effects).
        ExternalServiceFailure: A platform call failed.
    """
    params = RunParameters(
        start_date=start_date,
        end_date=end_date,
        ensemble_size=ensemble_size,
        pft_type=pft_type,
        nowait=nowait,
        crown_model=crown_model,
        n_limit_ps=n_limit_ps,
        n_limit_soil=n_limit_soil,
        multiple_scatter=multiple_scatter,
        trait_plasticity=trait_plasticity,
    )
    return run_ensemble(params, platform=platform, config=config, soil_path=soil_path)
