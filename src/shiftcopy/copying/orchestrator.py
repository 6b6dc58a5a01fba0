"""Batch orchestration of pattern copies.

This module runs the conflict analyzer across every selected target to
produce a dry-run preview, and commits the copy on apply. Each target is
applied independently: a persistence failure for one target is recorded in
its result and never stops the remaining targets.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from shiftcopy.copying.analyzer import ConflictAnalyzer
from shiftcopy.domain.models import (
    ApplyResult,
    CopyStrategy,
    CopySummary,
    ExistingShift,
    TargetAnalysis,
    TargetApplyResult,
    WeekPattern,
)
from shiftcopy.domain.repository import ShiftRepository
from shiftcopy.exceptions import RepositoryError

logger = logging.getLogger(__name__)


@dataclass
class CopyConfig:
    """Configuration for applying a copy.

    Attributes:
        concurrent: Apply targets concurrently instead of one after another.
        max_concurrency: Maximum targets in flight when concurrent.
        refresh_after_apply: Reload the shift snapshot after every apply with targets.
    """

    concurrent: bool = False
    max_concurrency: int = 4
    refresh_after_apply: bool = True

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")


def _describe(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


class CopyOrchestrator:
    """Analyses and applies a week pattern across a batch of targets.

    The orchestrator keeps a snapshot of existing shifts for the dry run.
    Apply re-reads each target's shifts from the repository, so it never
    acts on a stale analysis.

    Example:
        >>> orchestrator = await CopyOrchestrator.load(repository)
        >>> analyses = orchestrator.analyse_all(["E2", "E3"], pattern, CopyStrategy.ADDITIVE)
        >>> summary = orchestrator.get_summary(analyses)
        >>> result = await orchestrator.apply(["E2", "E3"], pattern, CopyStrategy.ADDITIVE)
    """

    def __init__(
        self,
        repository: ShiftRepository,
        shifts: Optional[Iterable[ExistingShift]] = None,
        config: Optional[CopyConfig] = None,
        analyzer: Optional[ConflictAnalyzer] = None,
    ):
        """Initialize the orchestrator.

        Args:
            repository: Backend used by apply.
            shifts: Snapshot of existing shifts for the dry run.
            config: Apply configuration.
            analyzer: Conflict analyzer to use.
        """
        self.repository = repository
        self.shifts = list(shifts or [])
        self.config = config or CopyConfig()
        self.analyzer = analyzer or ConflictAnalyzer()

    @classmethod
    async def load(
        cls,
        repository: ShiftRepository,
        config: Optional[CopyConfig] = None,
    ) -> "CopyOrchestrator":
        """Create an orchestrator with a fresh snapshot from the repository."""
        shifts = await repository.list_shifts()
        return cls(repository, shifts, config)

    async def refresh(self) -> list[ExistingShift]:
        """Reload the shift snapshot from the repository."""
        self.shifts = await self.repository.list_shifts()
        return self.shifts

    def analyse_target(
        self,
        target_id: str,
        pattern: WeekPattern,
        strategy: Union[CopyStrategy, str],
    ) -> TargetAnalysis:
        """Analyse one target against the current snapshot."""
        return self.analyzer.analyse(target_id, pattern, self.shifts, strategy)

    def analyse_all(
        self,
        target_ids: Iterable[str],
        pattern: WeekPattern,
        strategy: Union[CopyStrategy, str],
    ) -> list[TargetAnalysis]:
        """Dry run: analyse every target independently, in the given order."""
        return [self.analyse_target(target_id, pattern, strategy) for target_id in target_ids]

    @staticmethod
    def get_summary(analyses: list[TargetAnalysis]) -> CopySummary:
        """Sum the per-target counts."""
        return CopySummary(
            total_create=sum(a.to_create for a in analyses),
            total_skip=sum(a.to_skip for a in analyses),
            total_conflict=sum(a.conflicts for a in analyses),
            target_count=len(analyses),
            targets_with_changes=sum(1 for a in analyses if a.to_create > 0),
        )

    async def apply(
        self,
        target_ids: Iterable[str],
        pattern: WeekPattern,
        strategy: Union[CopyStrategy, str],
    ) -> ApplyResult:
        """Commit the pattern to every target.

        Under the replace strategy each target's shifts on the pattern's
        enabled weekdays are deleted before its new shifts are inserted.
        Failures are collected per target; this method does not raise for
        repository errors.

        Args:
            target_ids: Employees receiving the pattern.
            pattern: The pattern to copy. It is not modified.
            strategy: Merge strategy.

        Returns:
            ApplyResult reflecting what was actually committed.
        """
        strategy = CopyStrategy(strategy)
        target_ids = list(target_ids)
        logger.info(
            "Applying pattern to %d targets (strategy=%s, concurrent=%s)",
            len(target_ids),
            strategy.value,
            self.config.concurrent,
        )

        if self.config.concurrent and len(target_ids) > 1:
            semaphore = asyncio.Semaphore(self.config.max_concurrency)

            async def run(target_id: str) -> TargetApplyResult:
                async with semaphore:
                    return await self._apply_target(target_id, pattern, strategy)

            results = list(await asyncio.gather(*(run(t) for t in target_ids)))
        else:
            results = [
                await self._apply_target(target_id, pattern, strategy)
                for target_id in target_ids
            ]

        result = ApplyResult.from_targets(results)
        logger.info(
            "Apply finished: created=%d skipped=%d failed_targets=%d",
            result.created,
            result.skipped,
            len(result.errors),
        )

        # Deletes may have committed even when every insert failed.
        if target_ids and self.config.refresh_after_apply:
            try:
                await self.refresh()
            except RepositoryError:
                logger.exception("Could not reload shifts after apply")

        return result

    async def _apply_target(
        self,
        target_id: str,
        pattern: WeekPattern,
        strategy: CopyStrategy,
    ) -> TargetApplyResult:
        """Apply the pattern to a single target.

        Ordering within the target is read, delete (replace only), insert.
        Repository failures end this target and are returned, not raised.
        """
        try:
            existing = await self.repository.get_shifts_for_employee(target_id)
        except Exception as exc:
            logger.warning("Reading shifts failed for %s: %s", target_id, exc)
            return TargetApplyResult(
                employee_id=target_id,
                error=_describe(exc),
                failed_step="read",
            )

        analysis = self.analyzer.analyse(target_id, pattern, existing, strategy)
        skipped = analysis.to_skip + analysis.conflicts

        if strategy is CopyStrategy.REPLACE:
            for weekday in pattern.enabled_weekdays():
                try:
                    await self.repository.delete_shifts_for_employee_on_weekday(
                        target_id, weekday
                    )
                except Exception as exc:
                    logger.warning(
                        "Deleting weekday %d failed for %s: %s", weekday, target_id, exc
                    )
                    return TargetApplyResult(
                        employee_id=target_id,
                        skipped=skipped,
                        error=_describe(exc),
                        failed_step="delete",
                    )

        created = 0
        for weekday, interval in analysis.create_instructions():
            try:
                await self.repository.create_shift(target_id, weekday, interval)
            except Exception as exc:
                logger.warning(
                    "Creating shift %s on weekday %d failed for %s: %s",
                    interval, weekday, target_id, exc,
                )
                return TargetApplyResult(
                    employee_id=target_id,
                    created=created,
                    skipped=skipped,
                    error=_describe(exc),
                    failed_step="insert",
                )
            created += 1

        logger.debug("Applied %s: created=%d skipped=%d", target_id, created, skipped)
        return TargetApplyResult(employee_id=target_id, created=created, skipped=skipped)
