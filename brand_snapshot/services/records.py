"""
Record set fetching for snapshot computation.

Loads the unfiltered monthly_metrics and behavioral_coaching rows for one
organization/year and converts them to observation models. The two fetches
are independent and run concurrently on separate pool connections.

Timeouts are governed by the pool's command_timeout (see
brand_snapshot.core.database).
"""

import asyncio
import logging
from typing import List, Tuple

from pydantic import ValidationError

from brand_snapshot.core.database import get_db_pool
from brand_snapshot.models.schemas import CoachingObservation, MetricObservation
from brand_snapshot.sql.snapshot_queries import (
    get_behavioral_coaching_query,
    get_monthly_metrics_query,
)


logger = logging.getLogger(__name__)


class RecordFetchError(RuntimeError):
    """Raised when a source record set cannot be loaded."""


def _convert_rows(rows, model, table: str) -> list:
    """
    Convert fetched records with `model.from_record`.

    A row that still fails validation is skipped with a warning; one
    malformed row never fails the whole record set.
    """
    observations = []
    skipped = 0
    for row in rows:
        try:
            observations.append(model.from_record(row))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed {table} row: {e.errors(include_url=False)}")
    if skipped:
        logger.warning(f"Skipped {skipped} of {len(rows)} {table} rows that failed validation")
    return observations


async def fetch_metric_observations(organization: str, year: int) -> List[MetricObservation]:
    """
    Fetch monthly_metrics rows for an organization and year.

    Raises:
        RecordFetchError: If the query fails.
    """
    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(get_monthly_metrics_query(), organization, year)
    except Exception as e:
        logger.error(f"Monthly metrics query failed for {organization}/{year}: {e}", exc_info=True)
        raise RecordFetchError(f"Failed to fetch monthly metrics: {e}") from e

    logger.info(f"Fetched {len(rows)} monthly_metrics rows for {organization} in {year}")
    return _convert_rows(rows, MetricObservation, "monthly_metrics")


async def fetch_coaching_observations(organization: str, year: int) -> List[CoachingObservation]:
    """
    Fetch behavioral_coaching rows for an organization and year.

    Raises:
        RecordFetchError: If the query fails.
    """
    try:
        pool = await get_db_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(get_behavioral_coaching_query(), organization, year)
    except Exception as e:
        logger.error(f"Behavioral coaching query failed for {organization}/{year}: {e}", exc_info=True)
        raise RecordFetchError(f"Failed to fetch coaching data: {e}") from e

    logger.info(f"Fetched {len(rows)} behavioral_coaching rows for {organization} in {year}")
    return _convert_rows(rows, CoachingObservation, "behavioral_coaching")


async def fetch_record_sets(
    organization: str,
    year: int,
) -> Tuple[List[MetricObservation], List[CoachingObservation]]:
    """
    Fetch both record sets concurrently.

    Returns:
        Tuple of (metric observations, coaching observations).

    Raises:
        RecordFetchError: If either query fails.
    """
    metrics, coaching = await asyncio.gather(
        fetch_metric_observations(organization, year),
        fetch_coaching_observations(organization, year),
    )
    if not metrics and not coaching:
        logger.warning(
            f"No monthly_metrics or behavioral_coaching rows for {organization} in {year}; "
            "check the organization name and row-level security on the source tables"
        )
    return metrics, coaching
