# worker_pool.py
"""
Fan search terms out over independent browser sessions.

Each worker owns its own BrowserSession and works through one batch of
search terms at a time; workers start staggered and pause between models.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from tqdm import tqdm

from pcparts_scraper.core.config import BATCH_SIZE, MAX_WORKERS, MODEL_DELAY_RANGE_MS, WORKER_STAGGER_MS
from pcparts_scraper.core.logger import get_logger
from pcparts_scraper.models.search_term import SearchTerm

logger = get_logger(__name__)

# (worker_id, search_term) -> result dict with at least "saved"/"errors"
TermRunner = Callable[[Any, SearchTerm], Awaitable[Dict[str, Any]]]
SessionFactory = Callable[[], Any]


@dataclass
class PoolSummary:
    successful: int = 0
    failed: int = 0
    models: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {"successful": self.successful, "failed": self.failed, "models": self.models}


def create_batches(
    terms: Sequence[SearchTerm],
    batch_size: int = BATCH_SIZE,
    *,
    manufacturers: Optional[Iterable[str]] = None,
    priorities: Optional[Iterable[int]] = None,
    start_from: int = 0,
    max_models: Optional[int] = None,
) -> List[List[SearchTerm]]:
    """Filter, slice and chunk search terms into worker batches."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    selected = list(terms)
    if manufacturers:
        wanted = {m.lower() for m in manufacturers}
        selected = [t for t in selected if (t.manufacturer or "").lower() in wanted]
    if priorities:
        allowed = set(priorities)
        selected = [t for t in selected if t.priority in allowed]

    selected = selected[start_from:]
    if max_models is not None:
        selected = selected[:max_models]

    return [selected[i : i + batch_size] for i in range(0, len(selected), batch_size)]


async def run_worker_pool(
    batches: Sequence[Sequence[SearchTerm]],
    runner: TermRunner,
    session_factory: SessionFactory,
    *,
    max_workers: int = MAX_WORKERS,
    stagger_ms: int = WORKER_STAGGER_MS,
    delay_range_ms: tuple[int, int] = MODEL_DELAY_RANGE_MS,
    show_progress: bool = True,
) -> PoolSummary:
    """
    Run every batch with at most `max_workers` concurrent browser sessions.

    A failing model or browser session is logged and counted; it never stops
    its batch or the pool.
    """
    summary = PoolSummary()
    semaphore = asyncio.Semaphore(max(1, max_workers))
    total = sum(len(batch) for batch in batches)
    progress = tqdm(total=total, desc="models", unit="model", disable=not show_progress)

    def record(worker_id: int, term: SearchTerm, result: Dict[str, Any]) -> None:
        failed = bool(result.get("errors")) and not result.get("saved")
        if failed:
            summary.failed += 1
        else:
            summary.successful += 1
        summary.models[term.model] = {**result, "worker": worker_id, "ok": not failed}
        progress.update(1)

    async def work(worker_id: int, batch: Sequence[SearchTerm]) -> None:
        if stagger_ms and worker_id:
            await asyncio.sleep(stagger_ms * (worker_id % max(1, max_workers)) / 1000)
        async with semaphore:
            logger.info("Worker %d starting batch of %d models", worker_id, len(batch))
            done = 0
            try:
                async with session_factory() as session:
                    for index, term in enumerate(batch):
                        if index and delay_range_ms[1] > 0:
                            await asyncio.sleep(random.randint(*delay_range_ms) / 1000)
                        progress.set_postfix_str(f"w{worker_id}: {term.model}")
                        try:
                            result = await runner(session, term)
                        except Exception as exc:  # noqa: BLE001
                            logger.exception("Worker %d failed on %s", worker_id, term.model)
                            result = {"errors": [str(exc)], "saved": 0}
                        record(worker_id, term, result)
                        done += 1
            except Exception as exc:  # noqa: BLE001
                # session failed to open or close; models not yet run count as failed
                logger.exception("Worker %d session failed", worker_id)
                for term in batch[done:]:
                    record(worker_id, term, {"errors": [f"session_error: {exc}"], "saved": 0})

    try:
        await asyncio.gather(*(work(i, batch) for i, batch in enumerate(batches)))
    finally:
        progress.close()

    logger.info(
        "Worker pool finished: %d successful, %d failed of %d models",
        summary.successful,
        summary.failed,
        total,
    )
    return summary
