"""Scheduled credential refresh jobs.

Registers one independent interval job per registered kind. Jobs do not
wait for each other: a ticket job that runs before the access token is
cached simply defers to its next run. The ticket job is started a few
seconds later than the others so that, on a cold start, the access token
is normally already cached by the time the ticket is first attempted.
"""

from __future__ import annotations

from token_keeper.core.enums import CredentialKind, RefreshOutcome
from token_keeper.core.logger import logger
from token_keeper.services.context import ServiceContext
from token_keeper.services.credentials.policy import refresh_credential
from token_keeper.services.credentials.registry import REGISTRY
from token_keeper.services.system.scheduler import TaskScheduler, isolated_job


def job_id_for(kind: CredentialKind) -> str:
    return f"credential_refresh:{kind.value}"


class CredentialRefresher:
    """Owns the refresh jobs of one process."""

    def __init__(self, ctx: ServiceContext, scheduler: TaskScheduler) -> None:
        self.ctx = ctx
        self.scheduler = scheduler
        self.running = False

    def _job(self, kind: CredentialKind):
        async def run() -> RefreshOutcome:
            return await refresh_credential(self.ctx, kind)

        run.__name__ = f"refresh_{kind.value}"
        return isolated_job(run, name=REGISTRY[kind].name)

    def start(self) -> None:
        if self.running:
            logger.warning("Credential refresher already running")
            return

        settings = self.ctx.settings
        for kind, descriptor in REGISTRY.items():
            delay = settings.ticket_job_delay_seconds if descriptor.depends_on is not None else 0
            self.scheduler.add_interval_job(
                self._job(kind),
                seconds=settings.refresh_interval_seconds,
                job_id=job_id_for(kind),
                name=f"refresh {descriptor.name}",
                start_delay_seconds=delay,
            )
        self.running = True
        logger.info(
            "Credential refresher started ({} jobs, every {}s)",
            len(REGISTRY),
            settings.refresh_interval_seconds,
        )

    def stop(self) -> None:
        if not self.running:
            return
        for kind in REGISTRY:
            self.scheduler.remove_job(job_id_for(kind))
        self.running = False

    async def run_once(self) -> dict[CredentialKind, RefreshOutcome | None]:
        """Run every kind once, in registry order.

        Used at startup so that a cold cache is filled without waiting one
        interval. Kinds run sequentially so a dependency registered earlier
        is cached before its dependents are attempted. A ``None`` outcome
        means the job faulted and the fault was logged.
        """
        results: dict[CredentialKind, RefreshOutcome | None] = {}
        for kind in REGISTRY:
            results[kind] = await self._job(kind)()
        return results
