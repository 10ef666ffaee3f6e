"""Core data types for forte-ed.

This module is the SINGLE SOURCE OF TRUTH for:
  - Static identifiers of the FoRTE ED2 run (site, model, queue, input datasets)
  - RunParameters: validated, immutable user-facing run inputs
  - PftEntry, WorkflowRecord, EnsembleRun transfer objects

All other modules import these types from here.
"""

from __future__ import annotations

import datetime as _dt
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from forte_ed.errors import InvalidArgument


# ═══════════════════════════════════════════════════════════════════════
# STATIC IDENTIFIERS
# ═══════════════════════════════════════════════════════════════════════

SITE_ID = 1000000033                 # UMBS disturbance
MODEL_NAME = "ED2-experimental"
MODEL_REVISION = "experimental"
MODEL_QUEUE = "ED2_develop"

# BETY input record ids for the UMBS site
INPUT_IDS: Dict[str, int] = {
    'lu': 294,
    'soil': 297,
    'thsum': 295,
    'veg': 296,
}

PFT_TYPES = ("umbs", "standard")

DateLike = Union[_dt.date, str]


def _coerce_date(value: Any, name: str) -> _dt.date:
    """Accept a date, datetime or ISO-8601 string and return a date."""
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str):
        try:
            return _dt.date.fromisoformat(value.strip()[:10])
        except ValueError as exc:
            raise InvalidArgument(
                f"{name} must be an ISO date (YYYY-MM-DD), got '{value}'"
            ) from exc
    raise InvalidArgument(
        f"{name} must be a date or ISO date string, got {type(value).__name__}"
    )


# ═══════════════════════════════════════════════════════════════════════
# RUN PARAMETERS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RunParameters:
    """User-facing inputs for one FoRTE ED2 ensemble run.

    Validated on construction: the PFT taxonomy selector is lower-cased
    and must be one of PFT_TYPES, the ensemble size a positive integer,
    and the end date no earlier than the start date. Failures raise
    InvalidArgument.
    """
    start_date: DateLike
    end_date: DateLike
    ensemble_size: int = 1
    pft_type: str = "umbs"
    nowait: bool = True
    crown_model: bool = False
    n_limit_ps: bool = False
    n_limit_soil: bool = False
    multiple_scatter: bool = False
    trait_plasticity: bool = False

    def __post_init__(self):
        if not isinstance(self.pft_type, str):
            raise InvalidArgument(
                f"pft_type must be one of {PFT_TYPES}, got {self.pft_type!r}"
            )
        pft_type = self.pft_type.lower()
        if pft_type not in PFT_TYPES:
            raise InvalidArgument(
                f"pft_type must be one of {PFT_TYPES}, got '{self.pft_type}'"
            )

        size = self.ensemble_size
        if isinstance(size, bool) or not isinstance(size, numbers.Integral):
            raise InvalidArgument(
                f"ensemble_size must be an integer, got {size!r}"
            )
        if size < 1:
            raise InvalidArgument(
                f"ensemble_size must be >= 1, got {size}"
            )

        start = _coerce_date(self.start_date, "start_date")
        end = _coerce_date(self.end_date, "end_date")
        if end < start:
            raise InvalidArgument(
                f"end_date ({end}) must not be before start_date ({start})"
            )

        object.__setattr__(self, 'pft_type', pft_type)
        object.__setattr__(self, 'ensemble_size', int(size))
        object.__setattr__(self, 'start_date', start)
        object.__setattr__(self, 'end_date', end)
        for name in ('nowait', 'crown_model', 'n_limit_ps', 'n_limit_soil',
                     'multiple_scatter', 'trait_plasticity'):
            object.__setattr__(self, name, bool(getattr(self, name)))


# ═══════════════════════════════════════════════════════════════════════
# TRANSFER OBJECTS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PftEntry:
    """One plant functional type: BETY PFT name and ED2 PFT number."""
    name: str
    ed2_pft_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'ed2_pft_number': self.ed2_pft_number}


@dataclass(frozen=True)
class WorkflowRecord:
    """A row of the BETY ``workflows`` table, as created by the platform."""
    id: int
    site_id: int
    model_id: int
    start_date: _dt.date
    end_date: _dt.date
    notes: str = ""
    folder: Optional[str] = None


@dataclass
class EnsembleRun:
    """Result of a submitted run: the workflow id and the full settings."""
    workflow_id: int
    settings: Dict[str, Any] = field(default_factory=dict)
