import argparse
import json
import logging
import os
from datetime import date
from typing import Callable, Optional

from .config import PipelineSettings
from .errors import SnapshotError
from .generator import SnapshotGenerator
from .http_client import SimpleHttpClient, requests_transport
from .job import JobResult, run_refresh_job
from .locations import LocationReference
from .repository import FileSnapshotRepository
from .source_registry import build_adapters


LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snapshots")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("refresh", help="write truth, forecast and side files")
    subparsers.add_parser("truth", help="write truth and side files")
    subparsers.add_parser("forecasts", help="write forecast and side files")
    return parser


def build_generator(settings: PipelineSettings) -> SnapshotGenerator:
    client = SimpleHttpClient(transport=requests_transport(settings.request_timeout_seconds))
    reference = LocationReference.load(client, settings.locations_url)
    return SnapshotGenerator(
        reference=reference,
        adapters=build_adapters(client),
        data_start_date=settings.data_start_date,
        drop_incomplete_weeks=settings.drop_incomplete_weeks,
    )


def run_command(
    command: str,
    settings: PipelineSettings,
    today: Optional[date] = None,
    generator_factory: Callable[[PipelineSettings], SnapshotGenerator] = build_generator,
) -> JobResult:
    generator = generator_factory(settings)
    return run_refresh_job(
        settings=settings,
        generator=generator,
        repository=FileSnapshotRepository(settings),
        today=today or date.today(),
        include_truth=command in {"refresh", "truth"},
        include_forecasts=command in {"refresh", "forecasts"},
    )


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("FLUVIZ_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        result = run_command(args.command, PipelineSettings.from_env())
    except (SnapshotError, OSError) as error:
        LOGGER.error("%s failed: %s", args.command, error)
        return 1

    print(json.dumps(result.to_dict()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
