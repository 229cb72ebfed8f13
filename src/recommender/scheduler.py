"""Daily retraining trigger.

Runs a background thread that calls the same ``Trainer.train`` entry point
as the on-demand trigger once per day at a configured local time.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from src import config
from src.recommender.exceptions import TrainingInProgressError
from src.recommender.train import Trainer

# Configure module logger
logger = logging.getLogger(__name__)


def seconds_until(hour: int, minute: int, now: Optional[datetime] = None) -> float:
    """Seconds from ``now`` until the next occurrence of hour:minute."""
    now = now or datetime.now()
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class TrainingScheduler:
    """Background daily retraining."""

    def __init__(
        self,
        trainer: Trainer,
        hour: int = config.TRAINING_SCHEDULE_HOUR,
        minute: int = config.TRAINING_SCHEDULE_MINUTE,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.trainer = trainer
        self.hour = hour
        self.minute = minute
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="training-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(f"Scheduled daily retraining at {self.hour:02d}:{self.minute:02d}")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(seconds_until(self.hour, self.minute, self._clock())):
            self.run_once()

    def run_once(self) -> None:
        """Run one scheduled training; failures are logged, never raised."""
        logger.info("Starting scheduled model retraining...")
        try:
            stats = self.trainer.train()
        except TrainingInProgressError:
            logger.warning("Skipping scheduled retraining, a run is already in progress")
            return
        except Exception as e:
            logger.error(f"Scheduled model retraining failed: {e}", exc_info=True)
            return

        logger.info(
            f"Scheduled retraining complete: {stats.interactions} interactions, "
            f"{stats.users} users, {stats.products} products"
        )
