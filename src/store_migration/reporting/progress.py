"""Progress display for migration runs.

``ProgressTracker`` is an orchestrator event callback: pass the instance as
``on_event`` and it drives one tqdm bar per entity type.
"""

from tqdm import tqdm

from store_migration.migration.orchestrator import EventType, ProgressEvent
from store_migration.utils.logging import get_logger

logger = get_logger(__name__)


class ProgressTracker:
    """Renders orchestrator progress events as tqdm progress bars."""

    def __init__(self, enable: bool = True):
        """Initialize progress tracker.

        Args:
            enable: Whether to draw progress bars (False for CI/automation)
        """
        self.enable = enable
        self.bar: tqdm | None = None
        self.completed: dict[str, dict[str, int]] = {}
        self.errors: dict[str, str] = {}

    def __call__(self, event: ProgressEvent) -> None:
        if event.type == EventType.STARTED:
            self._start(event)
        elif event.type == EventType.PROGRESS:
            self._advance(event)
        elif event.type == EventType.COMPLETE:
            self._finish(event)
        elif event.type == EventType.ERROR:
            self.errors[event.entity_type] = event.error or "unknown error"
            self._close_bar()

    def _start(self, event: ProgressEvent) -> None:
        self._close_bar()
        if self.enable:
            self.bar = tqdm(
                total=event.total or 0,
                desc=f"  {event.entity_type}",
                unit="item",
                leave=True,
                bar_format="  {desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
            )
        logger.debug(
            "progress_started",
            entity_type=event.entity_type,
            total=event.total,
            already_migrated=event.already_migrated,
        )

    def _advance(self, event: ProgressEvent) -> None:
        if self.bar is None or event.stats is None:
            return
        self.bar.update(1)
        self.bar.set_postfix(
            created=event.stats.successful,
            skipped=event.stats.skipped,
            failed=event.stats.failed,
        )

    def _finish(self, event: ProgressEvent) -> None:
        if event.stats is not None:
            self.completed[event.entity_type] = {
                "successful": event.stats.successful,
                "skipped": event.stats.skipped,
                "failed": event.stats.failed,
            }
        self._close_bar()

    def _close_bar(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None

    def close(self) -> None:
        """Close any open progress bar."""
        self._close_bar()
        logger.debug("progress_tracker_closed", completed=self.completed, errors=self.errors)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
