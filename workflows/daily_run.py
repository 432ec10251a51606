"""
Prefect Workflow Orchestration - Daily Inventory Run

Nightly sequence over the inventory service:
1. Recompute usage for the business date (replace mode)
2. Rebuild the reorder snapshot
3. Email the shopping list when anything was flagged

Store calls already retry once on transient errors, so tasks carry no
retries of their own.
"""

from functools import lru_cache
from typing import Optional

from prefect import flow, task, get_run_logger

from cafe_inventory.services import InventoryService, ServiceResult, build_service


@lru_cache()
def get_service() -> InventoryService:
    """Service built once per worker process from settings"""
    return build_service()


class DailyRunStepError(RuntimeError):
    """A daily-run step reported failure"""

    def __init__(self, result: ServiceResult):
        self.result = result
        super().__init__(f"{result.scope} failed ({result.error_type}): {result.error}")


def _checked(result: ServiceResult) -> dict:
    if not result.ok:
        raise DailyRunStepError(result)
    return result.model_dump()


# =============================================================================
# TASKS
# =============================================================================

@task(name="inventory_usage", description="Explode sales into usage rows for the date")
def recompute_usage(date: str) -> dict:
    logger = get_run_logger()
    result = get_service().recompute_usage(date, mode="replace")
    for warning in result.warnings:
        logger.warning(warning)
    return _checked(result)


@task(name="reorder_check", description="Rebuild the reorder snapshot")
def recompute_reorder() -> dict:
    logger = get_run_logger()
    result = get_service().recompute_reorder()
    for warning in result.warnings:
        logger.warning(warning)
    return _checked(result)


@task(name="reorder_email", description="Email the shopping list through the dedup guard")
def send_reorder_email() -> dict:
    return _checked(get_service().send_reorder_email())


# =============================================================================
# FLOWS
# =============================================================================

@flow(
    name="daily_inventory_run",
    description="Usage recompute, reorder snapshot and reorder email",
)
def daily_inventory_run(date: Optional[str] = None) -> dict:
    """
    Daily inventory run.

    The date defaults to today's business date. A failing step stops the
    run and is named in the raised error.
    """
    logger = get_run_logger()

    date = date or get_service().calendar.today()

    logger.info(f"Starting daily inventory run for {date}")

    results = {"date": date, "steps": {}}

    try:
        usage = recompute_usage(date)
        results["steps"]["inventory_usage"] = usage["data"]

        reorder = recompute_reorder()
        results["steps"]["reorder_check"] = reorder["data"]

        flagged = reorder["data"].get("items_flagged", 0)
        if flagged > 0:
            email = send_reorder_email()
            results["steps"]["reorder_email"] = email["data"]
        else:
            logger.info("No items flagged; reorder email skipped")
            results["steps"]["reorder_email"] = {"skipped": True, "reason": "no_items_flagged"}

    except DailyRunStepError as e:
        logger.error(f"Daily inventory run failed at {e.result.scope}: {e.result.error}")
        raise

    logger.info(f"Daily inventory run complete for {date}")
    return results


# =============================================================================
# DEPLOYMENT CONFIGURATION
# =============================================================================

if __name__ == "__main__":
    daily_inventory_run()
