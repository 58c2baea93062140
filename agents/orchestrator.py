"""
Run modes for a stream definition set: immediate and scheduled.
"""

import logging
import signal
import threading
from typing import Any, Dict, Iterable, List, Optional

from agents.broadcast_agent import BroadcastAgent
from models.stream import StreamDefinitionSet
from schedulers.stream_scheduler import StreamScheduler

# Setup logging
logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class OrchestratorAgent:
    """Coordinates the broadcast agent with the stream scheduler."""

    def __init__(
        self,
        streams: StreamDefinitionSet,
        agent: BroadcastAgent,
        scheduler: Optional[StreamScheduler] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.streams = streams
        self.agent = agent
        self.scheduler = scheduler or StreamScheduler(agent.create_and_publish)
        self.logger = logger or logging.getLogger(__name__)
        self.is_running = False
        self.stop_event = threading.Event()

    def run_now(self) -> List[Dict[str, Any]]:
        """
        Run every stream's workflow once, sequentially, in definition order.

        Returns:
            One workflow result per stream definition
        """
        self.logger.info(f"running {len(self.streams)} stream jobs immediately")
        results = []
        for stream in self.streams:
            results.append(self.agent.create_and_publish(stream))

        succeeded = sum(1 for r in results if r["success"])
        self.logger.info(f"finished immediate run: {succeeded}/{len(results)} streams succeeded")
        return results

    def run_scheduled(
        self,
        stop_event: Optional[threading.Event] = None,
        signals: Iterable[int] = SHUTDOWN_SIGNALS
    ) -> None:
        """
        Arm one job per stream and block until a termination signal arrives.

        In-flight fires are drained before returning.

        Raises:
            ScheduleError: a stream has an invalid schedule expression; nothing is armed
        """
        if stop_event is not None:
            self.stop_event = stop_event

        # Registration errors are fatal before the scheduler starts
        self.scheduler.register(self.streams)

        previous_handlers = self._install_signal_handlers(signals)
        try:
            self.scheduler.start()
            self.is_running = True
            self.logger.info("scheduler started. waiting for a termination signal (Ctrl+C to stop)")

            while not self.stop_event.wait(timeout=1.0):
                pass

            self.logger.info("received shutdown request. waiting for running jobs to finish ...")
        finally:
            if self.scheduler.is_running:
                self.scheduler.stop(wait=True)
            self.is_running = False
            self._restore_signal_handlers(previous_handlers)

        self.logger.info("all jobs finished. shutting down")

    def stop(self) -> None:
        """Request shutdown of ``run_scheduled``."""
        self.stop_event.set()

    def _handle_signal(self, signum, frame) -> None:
        self.logger.info(f"received signal {signal.Signals(signum).name}")
        self.stop_event.set()

    def _install_signal_handlers(self, signals: Iterable[int]) -> Dict[int, Any]:
        previous = {}
        for signum in signals:
            previous[signum] = signal.signal(signum, self._handle_signal)
        return previous

    def _restore_signal_handlers(self, previous: Dict[int, Any]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def get_system_status(self) -> Dict[str, Any]:
        """Get orchestrator, scheduler and agent status."""
        return {
            "orchestrator": {
                "is_running": self.is_running,
                "streams": self.streams.names()
            },
            "scheduler": self.scheduler.get_stats(),
            "jobs": self.scheduler.get_scheduled_jobs(),
            "agent": self.agent.get_stats()
        }
