"""Plant functional type catalogs for the FoRTE ED2 runs.

Two fixed catalogs map the same four ED2 PFT numbers to BETY PFT
records: the site-calibrated ``umbs`` set and the generic ``standard``
temperate set. Order matters; PEcAn writes the PFTs in list order.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from forte_ed.errors import InvalidArgument
from forte_ed.types import PFT_TYPES, PftEntry


PFT_CATALOGS: Dict[str, Tuple[PftEntry, ...]] = {
    'umbs': (
        PftEntry("umbs.early_hardwood", 9),
        PftEntry("umbs.mid_hardwood", 10),
        PftEntry("umbs.late_hardwood", 11),
        PftEntry("umbs.northern_pine", 6),
    ),
    'standard': (
        PftEntry("temperate.Early_Hardwood", 9),
        PftEntry("temperate.North_Mid_Hardwood", 10),
        PftEntry("temperate.Late_Hardwood", 11),
        PftEntry("temperate.Northern_Pine", 6),
    ),
}


def select_pft_list(pft_type: str) -> List[PftEntry]:
    """Return the PFT list for a taxonomy selector (case-insensitive).

    Raises:
        InvalidArgument: If the selector is not one of PFT_TYPES.
    """
    key = pft_type.lower() if isinstance(pft_type, str) else pft_type
    if key not in PFT_CATALOGS:
        raise InvalidArgument(
            f"pft_type must be one of {PFT_TYPES}, got {pft_type!r}"
        )
    return list(PFT_CATALOGS[key])
