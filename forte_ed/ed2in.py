"""ED2IN tags and workflow notes for a FoRTE run.

ED2 reads its namelist (ED2IN) from a template; PEcAn overwrites the
tags listed under ``model.ed2in_tags``. Most tags here are fixed for the
FoRTE experiment (output switches, UMBS soil texture); five follow the
biophysical toggles in RunParameters and three describe the soil column.

References:
  - UMBS soil characteristics: Gough et al. 2010, Forest Ecol. Manage.
  - ED2 namelist documentation (ICANRAD, CROWN_MOD, N_PLANT_LIM, ...)
"""

from __future__ import annotations

from typing import Any, Dict

from forte_ed.soil import SoilProfile
from forte_ed.types import RunParameters
from forte_ed.utils import format_number


# ═══════════════════════════════════════════════════════════════════════
# STATIC TAGS
# ═══════════════════════════════════════════════════════════════════════

MET_DRIVER_DB = "/data/dbfiles/CUSTOM_ED2_site_1-33/ED_MET_DRIVER_HEADER"
OBSTIME_DB = "/data/dbfiles/forte_obstime.time"

# Canopy radiative transfer schemes
ICANRAD_MULTIPLE_SCATTER = 1
ICANRAD_TWO_STREAM = 2

OUTPUT_TAGS: Dict[str, Any] = {
    'ED_MET_DRIVER_DB': MET_DRIVER_DB,
    # No tower output; runs are 10-20x faster without it
    'ITOUTPUT': 0,
    'IMOUTPUT': 3,
    # "Observed" fast output at the times listed in OBSTIME_DB
    'IOOUTPUT': 3,
    'OBSTIME_DB': OBSTIME_DB,
    'OUTFAST': 0,
    # Monthly history files
    'ISOUTPUT': 3,
    'FRQSTATE': 1,
    'UNITSTATE': 2,
    'IFOUTPUT': 0,
    'IDOUTPUT': 0,
    'IQOUTPUT': 0,
    'IYOUTPUT': 0,
    'IADD_COHORT_MEANS': 1,
    'PLANT_HYDRO_SCHEME': 0,
    'ISTOMATA_SCHEME': 0,
    'ISTRUCT_GROWTH_SCHEME': 0,
}

SOIL_TAGS: Dict[str, Any] = {
    'INCLUDE_THESE_PFT': "6,9,10,11",
    'ISOILFLG': 2,     # soil characteristics set in ED2IN
    'NSLCON': 1,       # sand
    'SLXCLAY': 0.01,
    'SLXSAND': 0.92,
}

NOTES_TEMPLATE = "\n".join([
    "==FoRTE run==",
    "crown_model : {crown_model}",
    "n_limit_ps : {n_limit_ps}",
    "n_limit_soil : {n_limit_soil}",
    "multiple_scatter : {multiple_scatter}",
    "trait_plasticity : {trait_plasticity}",
])


def _flag_text(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def build_notes(params: RunParameters) -> str:
    """Free-text workflow notes recording the biophysical toggles."""
    return NOTES_TEMPLATE.format(
        crown_model=_flag_text(params.crown_model),
        n_limit_ps=_flag_text(params.n_limit_ps),
        n_limit_soil=_flag_text(params.n_limit_soil),
        multiple_scatter=_flag_text(params.multiple_scatter),
        trait_plasticity=_flag_text(params.trait_plasticity),
    )


def soil_column_tags(profile: SoilProfile) -> Dict[str, Any]:
    """NZG, SLZ and SLMSTR from a soil profile (deepest layer first)."""
    return {
        'NZG': profile.n_layers,
        'SLZ': ",".join(format_number(d) for d in profile.depth),
        'SLMSTR': ",".join(format_number(m) for m in profile.slmstr),
    }


def build_ed2in_tags(params: RunParameters, profile: SoilProfile) -> Dict[str, Any]:
    """Full ``model.ed2in_tags`` mapping for one run.

    Args:
        params: Validated run parameters (biophysical toggles).
        profile: Soil profile, deepest layer first.

    Returns:
        Ordered dict of ED2IN tag name -> value.
    """
    tags: Dict[str, Any] = dict(OUTPUT_TAGS)
    tags.update({
        'TRAIT_PLASTICITY_SCHEME': int(params.trait_plasticity),
        'ICANRAD': (ICANRAD_MULTIPLE_SCATTER if params.multiple_scatter
                    else ICANRAD_TWO_STREAM),
        'CROWN_MOD': int(params.crown_model),
        'N_PLANT_LIM': int(params.n_limit_ps),
        'N_DECOMP_LIM': int(params.n_limit_soil),
    })
    tags.update(SOIL_TAGS)
    tags.update(soil_column_tags(profile))
    return tags
