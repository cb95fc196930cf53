"""Seed script — compute gravity demand and rebuild the demand tables.

Steps:
1. Optionally seed a small set of demo airports (``--sample-airports``)
2. Load static datasets (zones, calibration, cultural ties, economics)
3. Compute the full pipeline in a worker thread (nothing is written yet)
4. In one transaction: clear metro_zones / airport_zone_mappings /
   airport_route_demands, insert the new rows, commit
5. Print the run report (mapping counts, K per decade, sample routes,
   category distribution)

A failure at any step rolls back, leaving the previous tables intact.

Usage:
    python -m scripts.seed                      # against DATABASE_URL from .env
    python -m scripts.seed --sample-airports    # demo airports first
    pytest tests/scripts/test_seed.py           # against aiosqlite in-memory
"""

import argparse
import asyncio
import sys
import threading
from collections.abc import Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.logging import configure_logging
from src.config.settings import Settings, get_settings
from src.data.static_loader import StaticDatasets, load_static_datasets
from src.engine.pipeline import GravityPipeline, PipelineResult, ProgressCallback
from src.models.zone import Airport
from src.repositories.airports import AirportRepository
from src.repositories.gravity import AirportRouteDemandRepository, GravityOutputRepository

logger = structlog.get_logger()

# (icao, iata, name, city, country, airport_type, latitude, longitude)
SAMPLE_AIRPORTS: list[tuple[str, str | None, str, str, str, str, float, float]] = [
    ("EGLL", "LHR", "London Heathrow", "London", "United Kingdom", "International Hub", 51.4706, -0.461941),
    ("EGKK", "LGW", "London Gatwick", "London", "United Kingdom", "Regional Hub", 51.1481, -0.190278),
    ("KJFK", "JFK", "John F Kennedy International", "New York", "United States", "International Hub", 40.6398, -73.7789),
    ("KEWR", "EWR", "Newark Liberty International", "Newark", "United States", "International Hub", 40.6925, -74.1687),
    ("KTEB", "TEB", "Teterboro", "Teterboro", "United States", "Small", 40.8501, -74.0608),
    ("LFPG", "CDG", "Paris Charles de Gaulle", "Paris", "France", "International Hub", 49.0097, 2.5479),
    ("OMDB", "DXB", "Dubai International", "Dubai", "United Arab Emirates", "International Hub", 25.2528, 55.3644),
    ("VIDP", "DEL", "Indira Gandhi International", "Delhi", "India", "International Hub", 28.5665, 77.1031),
    ("KLAX", "LAX", "Los Angeles International", "Los Angeles", "United States", "International Hub", 33.9425, -118.408),
    ("RJTT", "HND", "Tokyo Haneda", "Tokyo", "Japan", "International Hub", 35.5523, 139.78),
    ("YSSY", "SYD", "Sydney Kingsford Smith", "Sydney", "Australia", "International Hub", -33.9461, 151.177),
    ("LEMD", "MAD", "Adolfo Suarez Madrid-Barajas", "Madrid", "Spain", "International Hub", 40.4719, -3.56264),
    ("PHTO", "ITO", "Hilo International", "Hilo", "United States", "Regional", 19.7214, -155.0485),
]

SAMPLE_ROUTES: list[tuple[str, str]] = [
    ("EGLL", "KJFK"),
    ("OMDB", "EGLL"),
    ("VIDP", "EGLL"),
    ("KLAX", "RJTT"),
    ("LFPG", "KJFK"),
    ("EGLL", "YSSY"),
    ("EGLL", "LEMD"),
]


async def seed_sample_airports(session: AsyncSession) -> dict:
    """Insert demo airports that are not present yet (matched by ICAO).

    Returns dict with keys: created, skipped.
    """
    repo = AirportRepository(session)
    created = 0
    skipped = 0
    for icao, iata, name, city, country, airport_type, lat, lon in SAMPLE_AIRPORTS:
        if await repo.get_by_icao(icao) is not None:
            skipped += 1
            continue
        await repo.create(
            icao_code=icao, iata_code=iata, name=name, city=city, country=country,
            airport_type=airport_type, latitude=lat, longitude=lon,
        )
        created += 1
    return {"created": created, "skipped": skipped}


def compute_gravity_demands(
    airports: Sequence[Airport],
    datasets: StaticDatasets,
    *,
    workers: int = 4,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> PipelineResult:
    """Run the pipeline; pure computation, no database access."""
    pipeline = GravityPipeline(
        datasets, workers=workers, progress=progress, cancel_event=cancel_event,
    )
    return pipeline.run(airports)


async def seed_gravity_demands(
    session: AsyncSession,
    *,
    settings: Settings | None = None,
    datasets: StaticDatasets | None = None,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> dict:
    """Compute demand for all active airports and replace the output tables.

    Does not commit. The caller owns the transaction.

    Returns dict with keys: airport_count, result (PipelineResult), written.
    """
    settings = settings or get_settings()
    if datasets is None:
        datasets = load_static_datasets(settings.STATIC_DATA_DIR or None)

    airports = await AirportRepository(session).list_active()
    logger.info("gravity_seed_airports_loaded", airports=len(airports), zones=len(datasets.zones))

    result = await asyncio.to_thread(
        compute_gravity_demands,
        airports,
        datasets,
        workers=settings.DECADE_WORKERS,
        progress=progress,
        cancel_event=cancel_event,
    )

    written = await GravityOutputRepository(session).replace_all(
        result.zones,
        result.assignments,
        result.demands,
        batch_size=settings.PERSIST_BATCH_SIZE,
        mapping_batch_size=settings.MAPPING_BATCH_SIZE,
    )
    logger.info("gravity_seed_rows_written", **written)
    return {"airport_count": len(airports), "result": result, "written": written}


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def _print_report(summary: dict) -> None:
    result: PipelineResult = summary["result"]
    report = result.report
    print("Gravity demand seed complete.")
    print(f"  Zones:          {len(result.zones)}")
    print(f"  Airports:       {summary['airport_count']}")
    print(f"  Explicit:       {report.explicit}")
    print(f"  Proximity:      {report.proximity}")
    print(f"  Unmapped:       {len(report.unmapped)}")
    if result.missing_gdp_countries:
        print(f"  No GDP data:    {', '.join(result.missing_gdp_countries)}")
    print(f"  Demand records: {summary['written']['demands']}")
    print()
    print(f"  {'Decade':<8} {'K':>12} {'Zone pairs':>11} {'Pairs kept':>11}")
    print(f"  {'─' * 8} {'─' * 12} {'─' * 11} {'─' * 11}")
    for s in result.summaries:
        print(f"  {s.decade:<8} {s.k:>12.4e} {s.zone_pairs_with_demand:>11,} {s.airport_pairs_kept:>11,}")


async def _print_sample_routes(session: AsyncSession) -> None:
    repo = AirportRouteDemandRepository(session)
    print()
    print("Sample routes (1950 → 2020):")
    for origin, dest in SAMPLE_ROUTES:
        row = await repo.get_pair(origin, dest)
        if row is None:
            print(f"  {origin}-{dest}: no demand")
            continue
        series = " ".join(f"{v:>3}" for v in row.demands().values())
        print(f"  {origin}-{dest}: {series}  [{row.demand_category}, {row.route_type}]")

    print()
    print("Category distribution:")
    for category, count in sorted((await repo.category_counts()).items()):
        print(f"  {category:<10} {count:>10,}")


# ---------------------------------------------------------------------------
# CLI entry point: python -m scripts.seed
# ---------------------------------------------------------------------------


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute gravity demand and rebuild the airport route demand tables",
    )
    parser.add_argument(
        "--sample-airports", action="store_true",
        help="Insert demo airports before computing",
    )
    parser.add_argument(
        "--data-dir", default=None,
        help="Directory with the static JSON datasets (overrides STATIC_DATA_DIR)",
    )
    return parser.parse_args(argv)


async def _run_seed(argv: Sequence[str] | None = None) -> int:
    """Run the seed against the real database. Returns the process exit code."""
    from src.db.session import async_session_factory, session_scope

    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    def _progress(decade: int, completed: int, total: int) -> None:
        logger.info("gravity_decade_done", decade=decade, completed=completed, total=total)

    try:
        async with session_scope() as session:
            if args.sample_airports:
                seeded = await seed_sample_airports(session)
                logger.info("gravity_sample_airports", **seeded)
            datasets = load_static_datasets(args.data_dir or settings.STATIC_DATA_DIR or None)
            summary = await seed_gravity_demands(
                session, settings=settings, datasets=datasets, progress=_progress,
            )
    except Exception:
        logger.exception("gravity_seed_failed")
        return 1

    _print_report(summary)
    async with async_session_factory() as session:
        await _print_sample_routes(session)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_run_seed()))
