"""Soil-moisture profile for the ED2 soil column.

The derived dataset (Ameriflux soil moisture at UMBS) is a CSV with
columns ``depth`` (positive, m below surface) and ``slmstr`` (initial
soil moisture fraction). ED2 builds its soil column from the bottom up,
so the profile is stored with negated depths sorted ascending: deepest
layer first, surface last.

Malformed input fails loudly with IOFailure. Nothing is auto-corrected:
missing values, non-numeric cells and duplicate depths are all rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
import pandas as pd

from forte_ed.errors import IOFailure
from forte_ed.utils import file_sha256

logger = logging.getLogger(__name__)

SOIL_COLUMNS = ('depth', 'slmstr')


@dataclass(frozen=True)
class SoilProfile:
    """Ordered soil layers, deepest (most negative depth) first."""
    depth: Tuple[float, ...]
    slmstr: Tuple[float, ...]

    @property
    def n_layers(self) -> int:
        return len(self.depth)

    def layers(self) -> List[Tuple[float, float]]:
        """(depth, slmstr) pairs in profile order."""
        return list(zip(self.depth, self.slmstr))


def soil_profile_from_frame(df: pd.DataFrame, source: str = "<frame>") -> SoilProfile:
    """Validate a raw soil table and convert it to a SoilProfile.

    Args:
        df: Table with at least the columns ``depth`` and ``slmstr``,
            depths positive below the surface.
        source: Label used in error messages.

    Returns:
        SoilProfile with negated depths sorted ascending.

    Raises:
        IOFailure: On missing columns, no rows, missing or non-numeric
            values, or duplicate depths.
    """
    missing = [c for c in SOIL_COLUMNS if c not in df.columns]
    if missing:
        raise IOFailure(
            f"Soil moisture dataset {source} is missing column(s) {missing}"
        )
    if len(df) == 0:
        raise IOFailure(f"Soil moisture dataset {source} has no rows")

    columns = {}
    for name in SOIL_COLUMNS:
        values = pd.to_numeric(df[name], errors='coerce')
        bad = values.isna()
        if bad.any():
            rows = [int(i) for i in np.flatnonzero(bad.to_numpy())]
            raise IOFailure(
                f"Soil moisture dataset {source}: column '{name}' has "
                f"missing or non-numeric values at rows {rows}"
            )
        columns[name] = values.to_numpy()

    depth = -columns['depth']
    if len(np.unique(depth)) != len(depth):
        raise IOFailure(
            f"Soil moisture dataset {source} has duplicate depths"
        )

    # Stable sort, deepest layer first
    order = np.argsort(depth, kind='stable')
    return SoilProfile(
        depth=tuple(depth[order].tolist()),
        slmstr=tuple(columns['slmstr'][order].tolist()),
    )


def load_soil_profile(path: Union[str, Path]) -> SoilProfile:
    """Read the soil-moisture CSV and return the ED2-ordered profile.

    Raises:
        IOFailure: If the file is missing, empty, unparseable or malformed.
    """
    path = Path(path)
    if not path.is_file():
        raise IOFailure(f"Soil moisture dataset not found: {path}")

    try:
        df = pd.read_csv(path)
    except pd.errors.EmptyDataError as exc:
        raise IOFailure(f"Soil moisture dataset {path} is empty") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise IOFailure(f"Could not parse soil moisture dataset {path}: {exc}") from exc

    profile = soil_profile_from_frame(df, source=str(path))
    logger.info("Loaded soil profile with %d layers from %s", profile.n_layers, path)
    logger.debug("Soil dataset sha256=%s", file_sha256(path))
    return profile
