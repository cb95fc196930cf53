"""Demand diagnostics — inspect the persisted airport route demand table.

Prints:
1. Top destinations for an origin airport in a decade
2. Key routes across decades
3. Row counts per demand bucket for the decade

Usage:
    python -m scripts.check_demand
    python -m scripts.check_demand --origin KJFK --decade 2000 --limit 20
"""

import argparse
import asyncio
import sys
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.tables import DEMAND_DECADES
from src.repositories.gravity import AirportRouteDemandRepository

KEY_ROUTES: list[tuple[str, str, str]] = [
    ("EGLL", "KJFK", "Heathrow-JFK"),
    ("EGLL", "EGCC", "Heathrow-Manchester"),
    ("EGLL", "LFPG", "Heathrow-Paris CDG"),
    ("EGLL", "OMDB", "Heathrow-Dubai"),
    ("EGLL", "VIDP", "Heathrow-Delhi"),
    ("EGLL", "RJTT", "Heathrow-Tokyo"),
    ("EGLL", "LEMD", "Heathrow-Madrid"),
    ("EGLL", "YSSY", "Heathrow-Sydney"),
    ("EGSS", "LFPG", "Stansted-Paris"),
    ("EGSS", "LEMD", "Stansted-Madrid"),
    ("KJFK", "KLAX", "JFK-LAX"),
    ("OMDB", "VIDP", "Dubai-Delhi"),
]


async def demand_report(
    session: AsyncSession,
    *,
    origin: str = "EGLL",
    decade: int = 2010,
    limit: int = 15,
    routes: Sequence[tuple[str, str, str]] = KEY_ROUTES,
) -> dict:
    """Collect the diagnostic figures.

    Returns dict with keys: top (list of (icao, name, country, demand)),
    routes (label -> decade demands or None), distribution (bucket -> count).
    """
    repo = AirportRouteDemandRepository(session)
    key_routes: dict[str, dict[int, int] | None] = {}
    for from_icao, to_icao, label in routes:
        row = await repo.get_pair(from_icao, to_icao)
        key_routes[label] = row.demands() if row is not None else None
    return {
        "top": await repo.top_destinations(origin, decade, limit=limit),
        "routes": key_routes,
        "distribution": await repo.demand_distribution(decade),
    }


def _print_report(report: dict, origin: str, decade: int) -> None:
    print(f"=== {origin} top destinations by demand_{decade} ===")
    for icao, name, country, demand in report["top"]:
        print(f"  {icao:<5} {demand:>4}  {name} ({country})")
    if not report["top"]:
        print("  (none)")

    print()
    print("=== Key routes ===")
    header = " ".join(f"{d:>5}" for d in DEMAND_DECADES)
    print(f"  {'':<22} {header}")
    for label, demands in report["routes"].items():
        if demands is None:
            print(f"  {label:<22} NO RECORD")
            continue
        print(f"  {label:<22} " + " ".join(f"{demands[d]:>5}" for d in DEMAND_DECADES))

    print()
    print(f"=== Distribution (demand_{decade}) ===")
    for bucket, count in report["distribution"].items():
        print(f"  {bucket:<7} {count:>10,}")


async def _run_check(argv: Sequence[str] | None = None) -> int:
    from src.db.session import async_session_factory

    parser = argparse.ArgumentParser(description="Inspect persisted gravity demand")
    parser.add_argument("--origin", default="EGLL", help="Origin ICAO code")
    parser.add_argument(
        "--decade", type=int, default=2010, choices=DEMAND_DECADES,
        help="Decade column to rank and bucket by",
    )
    parser.add_argument("--limit", type=int, default=15, help="Destinations to list")
    args = parser.parse_args(argv)

    async with async_session_factory() as session:
        report = await demand_report(
            session, origin=args.origin, decade=args.decade, limit=args.limit,
        )
    _print_report(report, args.origin, args.decade)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_run_check()))
