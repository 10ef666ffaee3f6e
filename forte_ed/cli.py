"""Command line entry point: submit a FoRTE ED2 ensemble run.

Usage:
    forte-ed 2000-06-01 2020-12-31 --ensemble-size 50 --multiple-scatter
    forte-ed 2000-06-01 2020-12-31 --pft-type standard --dry-run
    forte-ed 2000-06-01 2020-12-31 --config configs/default.yaml \\
        --site-config configs/local.yaml --save-settings run.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from forte_ed.config import config_to_dict, default_config, load_config
from forte_ed.ed2in import build_ed2in_tags, build_notes
from forte_ed.ensemble import run_ensemble
from forte_ed.errors import ForteError
from forte_ed.soil import load_soil_profile
from forte_ed.types import PFT_TYPES, RunParameters

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forte-ed",
        description="Configure and submit a FoRTE ED2 ensemble run to PEcAn.",
        epilog="Example: forte-ed 2000-06-01 2020-12-31 --ensemble-size 50",
    )
    parser.add_argument("start_date", help="First day of run (YYYY-MM-DD)")
    parser.add_argument("end_date", help="Last day of run (YYYY-MM-DD)")
    parser.add_argument(
        "--ensemble-size", type=int, default=1,
        help="Number of ensemble members (default: 1)",
    )
    parser.add_argument(
        "--pft-type", type=str.lower, default="umbs", choices=PFT_TYPES,
        help="PFT definitions (default: umbs)",
    )
    parser.add_argument("--crown-model", action="store_true",
                        help="Use the finite canopy radius model")
    parser.add_argument("--n-limit-ps", action="store_true",
                        help="Nitrogen-limited photosynthesis")
    parser.add_argument("--n-limit-soil", action="store_true",
                        help="Nitrogen-limited soil respiration")
    parser.add_argument("--multiple-scatter", action="store_true",
                        help="Multiple-scattering canopy RTM (default: two-stream)")
    parser.add_argument("--trait-plasticity", action="store_true",
                        help="Enable the trait plasticity scheme")
    parser.add_argument(
        "--wait", action="store_true",
        help="Let PEcAn wait for running workflows before starting this one",
    )
    parser.add_argument("--config", type=str, default=None,
                        help="Base config YAML (default: built-in defaults)")
    parser.add_argument("--site-config", type=str, default=None,
                        help="Site/deployment override YAML")
    parser.add_argument("--soil-moisture", type=str, default=None,
                        help="Soil-moisture CSV (default: from config)")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print notes, ED2IN tags and the effective config without contacting PEcAn",
    )
    parser.add_argument("--save-settings", type=str, default=None,
                        help="Write the submitted settings to this YAML file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    return parser


def _redacted_config(config) -> dict:
    data = config_to_dict(config)
    for section in data.values():
        if isinstance(section, dict) and 'password' in section:
            section['password'] = "***"
    return data


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if args.config is not None:
            config = load_config(args.config, site_path=args.site_config)
        elif args.site_config is not None:
            config = load_config(args.site_config)
        else:
            config = default_config()
        _configure_logging("DEBUG" if args.verbose else config.logging.level.upper())

        params = RunParameters(
            start_date=args.start_date,
            end_date=args.end_date,
            ensemble_size=args.ensemble_size,
            pft_type=args.pft_type,
            nowait=not args.wait,
            crown_model=args.crown_model,
            n_limit_ps=args.n_limit_ps,
            n_limit_soil=args.n_limit_soil,
            multiple_scatter=args.multiple_scatter,
            trait_plasticity=args.trait_plasticity,
        )
        soil_path = args.soil_moisture or config.paths.soil_moisture_path()

        if args.dry_run:
            profile = load_soil_profile(soil_path)
            preview = {
                'notes': build_notes(params),
                'ed2in_tags': build_ed2in_tags(params, profile),
                'config': _redacted_config(config),
            }
            print(yaml.safe_dump(preview, sort_keys=False), end="")
            return 0

        run = run_ensemble(params, config=config, soil_path=soil_path)
    except (ForteError, FileNotFoundError) as exc:
        print(f"forte-ed: error: {exc}", file=sys.stderr)
        return 1

    if args.save_settings is not None:
        path = Path(args.save_settings)
        with open(path, 'w') as f:
            yaml.safe_dump(run.settings, f, sort_keys=False)
        logger.info("Settings written to %s", path)

    print(run.workflow_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
