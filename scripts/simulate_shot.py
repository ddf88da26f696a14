#!/usr/bin/env python3
"""
Resolve a turn for the default QF 18-pounder loadout and fly the shot.

Usage:
    python scripts/simulate_shot.py
    python scripts/simulate_shot.py --elevation 25 --deflection -3 --charges 4 --seed 7
    python scripts/simulate_shot.py --wind 0.5 0 0 --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from artillery.config import SimulationConfig
from artillery.errors import ArtilleryError, UnknownPlatformError
from artillery.mechanisms import MatchContext
from artillery.physics import Vector3D
from artillery.platforms import (
    DEFAULT_LOADOUT_PATH,
    create_definitions_from_loadout_data,
    create_equipped_from_loadout_data,
    default_registry,
    load_loadout_data,
)
from artillery.turn import fire


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulate one artillery shot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python scripts/simulate_shot.py --elevation 30 --charges 3
    python scripts/simulate_shot.py --loadout data/qf_18_pounder.json --seed 42 --json
        """,
    )

    parser.add_argument(
        "--loadout",
        default=str(DEFAULT_LOADOUT_PATH),
        help="Loadout JSON file (default: data/qf_18_pounder.json)",
    )
    parser.add_argument("--elevation", type=int, help="Elevation dial clicks")
    parser.add_argument("--deflection", type=int, help="Deflection screw turns")
    parser.add_argument("--charges", type=int, help="Powder charges")
    parser.add_argument("--seed", type=int, default=98765, help="Match seed (default: 98765)")
    parser.add_argument(
        "--wind",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Wind acceleration per m^2 of cross-section",
    )
    parser.add_argument(
        "--target-distance",
        type=float,
        default=500.0,
        help="True target distance for the sight's estimate (default: 500)",
    )
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main() -> int:
    args = build_parser().parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    loadout = load_loadout_data(args.loadout)
    try:
        platform = default_registry().get(loadout["platform"])
    except UnknownPlatformError as e:
        print(f"Invalid loadout: {e}", file=sys.stderr)
        return 2
    errors = platform.validate_loadout(
        loadout["platform"], create_definitions_from_loadout_data(loadout)
    )
    if errors:
        for error in errors:
            print(f"Invalid loadout: {error}", file=sys.stderr)
        return 2

    player_input = dict(loadout.get("default_input", {}))
    for key, value in (
        ("elevation", args.elevation),
        ("deflection", args.deflection),
        ("powder_charges", args.charges),
    ):
        if value is not None:
            player_input[key] = value

    match = MatchContext(
        match_id=args.seed,
        target_distance=args.target_distance,
        wind=Vector3D(*args.wind) if args.wind else None,
    )

    try:
        report = fire(
            create_equipped_from_loadout_data(loadout, args.seed),
            player_input,
            match=match,
            config=SimulationConfig.from_env(),
        )
    except ArtilleryError as e:
        print(f"Shot failed: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    attrs = report.resolution.ballistic_attributes
    result = report.result
    print("=" * 60)
    print(f"{platform.name} - seed {args.seed}")
    print("=" * 60)
    print(f"Input:            {player_input}")
    print(f"Elevation:        {attrs['angle_deg']:.2f} deg")
    print(f"Deflection:       {attrs['deflection_deg']:.2f} deg")
    print(f"Muzzle velocity:  {attrs['initial_velocity']:.1f} m/s")
    print(f"Shell weight:     {attrs['shell_weight']:.2f} kg")
    print(f"Turn delay:       {report.resolution.turn_order_delay:.2f} s")
    for key, value in report.resolution.assistance_data.items():
        print(f"Assist {key}: {value}")
    print("-" * 60)
    print(f"Impact:           {result.impact_xyz}")
    print(f"Flight time:      {result.flight_time:.2f} s")
    print(f"Max altitude:     {result.max_altitude:.1f} m")
    print(f"Ground range:     {result.ground_range:.1f} m")
    return 0


if __name__ == "__main__":
    sys.exit(main())
