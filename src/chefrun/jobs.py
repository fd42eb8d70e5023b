"""Run independent convergence sessions against many targets in parallel."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from time import perf_counter
from typing import Any, Callable, List, Optional, Sequence

from chefrun.actions.converge_target import converge
from chefrun.config import ChefRunConfig
from chefrun.errors import MultiJobFailure
from chefrun.types import JobResult

logger = logging.getLogger(__name__)

JobNotificationHandler = Callable[[str, str, tuple], None]


@dataclass(slots=True)
class ConvergeJob:
    """One target to converge. Each job owns its connection for its whole run."""

    target_host: Any
    local_policy_path: Path
    cache_path: Optional[str] = None

    @property
    def host(self) -> str:
        return str(getattr(self.target_host, "hostname", self.target_host))


def _run_job(
    job: ConvergeJob,
    config: ChefRunConfig,
    notification_handler: Optional[JobNotificationHandler],
) -> JobResult:
    def _notify(message: str, args: tuple) -> None:
        if notification_handler is not None:
            notification_handler(job.host, message, args)

    start = perf_counter()
    try:
        job.target_host.connect()
        try:
            converge(
                job.target_host,
                job.local_policy_path,
                cache_path=job.cache_path,
                config=config,
                notification_handler=_notify,
            )
        finally:
            job.target_host.disconnect()
    except Exception as e:
        # Captured per job so one failing host does not interrupt the others.
        logger.error(f"[{job.host}] {e}")
        return JobResult(host=job.host, exception=e, duration_seconds=perf_counter() - start)
    return JobResult(host=job.host, duration_seconds=perf_counter() - start)


def converge_all(
    jobs: Sequence[ConvergeJob],
    config: Optional[ChefRunConfig] = None,
    notification_handler: Optional[JobNotificationHandler] = None,
) -> List[JobResult]:
    """
    Converge every job's target, up to ``config.max_workers`` at a time.

    Returns:
        One JobResult per job, in the order the jobs were given.

    Raises:
        MultiJobFailure: After all jobs finish, if any of them failed.
    """
    if not jobs:
        return []

    config = config or ChefRunConfig()
    hosts = [job.host for job in jobs]
    if len(set(hosts)) != len(hosts):
        raise ValueError("Each job must target a distinct host")

    results: List[Optional[JobResult]] = [None] * len(jobs)
    workers = min(config.max_workers, len(jobs))
    logger.info(f"Converging {len(jobs)} target(s) with {workers} worker(s)")

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_run_job, job, config, notification_handler): index
            for index, job in enumerate(jobs)
        }
        for future in as_completed(futures):
            index = futures[future]
            results[index] = future.result()
            status = "succeeded" if results[index].succeeded else "failed"
            logger.info(f"[{results[index].host}] converge {status} in {results[index].duration_seconds:.1f}s")

    failed = [r for r in results if not r.succeeded]
    if failed:
        raise MultiJobFailure(failed, len(jobs))
    return results
