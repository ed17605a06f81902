"""Collecting status from every instance and summing it up.

One collect() call is one render pass: all instances are fetched
concurrently, each result is turned into an InstanceReport, and aggregate()
folds the reports into the overall Totals. Nothing is kept between passes.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime

from .config import Config, InstanceConfig
from .fetcher import fetch_status, status_url
from .models import InstanceReport, LinkState, StatusFetch, Totals
from .status import build_report

logger = logging.getLogger(__name__)

FetchFunc = Callable[[InstanceConfig, str], StatusFetch]


def _timed_out(instance: InstanceConfig, render_timeout: int) -> StatusFetch:
    return StatusFetch(
        instance=instance,
        url=status_url(instance),
        body="",
        error=f"No response within {render_timeout}s render timeout",
        response_time_ms=render_timeout * 1000,
    )


def fetch_all(config: Config, fetch: FetchFunc = fetch_status) -> list[StatusFetch]:
    """Fetch every instance's status document concurrently.

    Waits at most monitor.render_timeout seconds in total. Instances that
    have not answered by then are reported as failed; the others are not
    affected.

    Args:
        config: Application configuration.
        fetch: Fetch function, called as fetch(instance, user_agent).

    Returns:
        One StatusFetch per instance, in configured order.
    """
    monitor = config.monitor
    instances = config.instances
    executor = ThreadPoolExecutor(
        max_workers=min(monitor.max_workers, len(instances)),
        thread_name_prefix="status-fetch",
    )

    try:
        futures: list[Future[StatusFetch]] = [
            executor.submit(fetch, instance, monitor.user_agent) for instance in instances
        ]
        wait(futures, timeout=monitor.render_timeout)

        results: list[StatusFetch] = []
        for instance, future in zip(instances, futures):
            if not future.done():
                logger.warning("%s: still waiting after %ds, marking failed", instance.name, monitor.render_timeout)
                results.append(_timed_out(instance, monitor.render_timeout))
                continue
            try:
                results.append(future.result())
            except Exception as e:
                logger.error("Failed to fetch %s: %s", instance.name, e)
                results.append(
                    StatusFetch(instance=instance, url=status_url(instance), body="", error=str(e))
                )
        return results
    finally:
        # Do not block the page on fetches that outlived the render timeout.
        executor.shutdown(wait=False, cancel_futures=True)


def collect(
    config: Config,
    now: datetime | None = None,
    fetch: FetchFunc = fetch_status,
) -> list[InstanceReport]:
    """Fetch all instances and build one report per instance.

    Args:
        config: Application configuration.
        now: Reference time for start-time calculations (defaults to now).
        fetch: Fetch function, replaceable for tests.

    Returns:
        Reports in configured order.
    """
    if now is None:
        now = datetime.now()

    fetches = fetch_all(config, fetch)
    reports = [build_report(index, result, now) for index, result in enumerate(fetches)]

    failed = sum(1 for r in reports if not r.ok)
    logger.debug("Collected %d instance(s), %d failed", len(reports), failed)
    return reports


def aggregate(reports: list[InstanceReport]) -> Totals:
    """Sum counters across instances.

    Failed instances carry zero for every counter, so they drop out of the
    sums without special casing.
    """
    link_states = {state: 0 for state in LinkState}
    for report in reports:
        for state, count in report.link_states.items():
            link_states[state] += count

    return Totals(
        received=sum(r.received_total for r in reports),
        inbound=sum(r.inbound for r in reports),
        sent=sum(r.sent_total for r in reports),
        outbound=sum(r.outbound for r in reports),
        queued_mo=sum(r.received_queued for r in reports),
        queued_mt=sum(r.sent_queued for r in reports),
        links=sum(r.link_count for r in reports),
        link_states=link_states,
    )
