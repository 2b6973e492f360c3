"""Background thread serving simulation requests."""

import queue
import threading

from neuralreinforcement.logging_config import logger
from neuralreinforcement.simulation._simulation import (
    Reinforce,
    Reply,
    Request,
    Simulation,
)

DEFAULT_QUEUE_SIZE = 100
IDLE_POLL_SECONDS = 0.05
DEFAULT_JOIN_TIMEOUT = 2.0


class SimulationWorker:
    """
    Run a simulation on its own thread, driven through bounded queues.

    Requests are served in order. When none is pending and ``idle_reinforce``
    is set, the worker keeps learning by serving a ``Reinforce`` request.
    A full reply queue or an exception raised by the simulation stops the
    worker; the exception is kept in ``error``.

    Usage:
        with SimulationWorker(simulation) as worker:
            worker.submit(Render())
            trajectories = worker.get_reply(timeout=5.0)
    """

    def __init__(
        self,
        simulation: Simulation,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        *,
        idle_reinforce: bool = True,
    ) -> None:
        self.simulation = simulation
        self.idle_reinforce = idle_reinforce
        self.requests: queue.Queue[Request] = queue.Queue(maxsize=queue_size)
        self.replies: queue.Queue[Reply] = queue.Queue(maxsize=queue_size)
        self.error: Exception | None = None
        self.served_requests = 0
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name="simulation-worker", daemon=True)

    def __enter__(self) -> "SimulationWorker":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        """Whether the worker thread is alive."""
        return self._thread.is_alive()

    def start(self) -> None:
        """Start serving requests."""
        logger.info(f"Starting simulation worker for {type(self.simulation).__name__}")
        self._thread.start()

    def stop(self, timeout: float = DEFAULT_JOIN_TIMEOUT) -> None:
        """Ask the worker to stop after the current request and wait for it."""
        self._stop_event.set()
        if self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info(f"Simulation worker stopped after {self.served_requests} requests")

    def submit(self, request: Request) -> bool:
        """
        Queue a request without blocking.

        Returns
        -------
            False if the request queue is full or the worker has stopped.
        """
        if not self.running:
            logger.error("Cannot submit a request: the simulation worker is not running.")
            return False
        try:
            self.requests.put_nowait(request)
        except queue.Full:
            logger.error("The simulation request queue is full, dropping the request.")
            return False
        return True

    def get_reply(self, timeout: float | None = None) -> Reply:
        """Wait for the next reply; raises ``queue.Empty`` after ``timeout`` seconds."""
        return self.replies.get(timeout=timeout)

    def _next_request(self) -> Request | None:
        try:
            return self.requests.get_nowait()
        except queue.Empty:
            if self.idle_reinforce:
                return Reinforce()
        try:
            return self.requests.get(timeout=IDLE_POLL_SECONDS)
        except queue.Empty:
            return None

    def _run(self) -> None:
        while not self._stop_event.is_set():
            request = self._next_request()
            if request is None:
                continue
            try:
                reply = self.simulation.handle_request(request)
            except Exception as e:
                logger.exception(f"Simulation request {request!r} failed: {e}")
                self.error = e
                return
            self.served_requests += 1
            if reply is None:
                continue
            try:
                self.replies.put_nowait(reply)
            except queue.Full:
                logger.error("The simulation reply queue is full, stopping the worker.")
                return
