"""ProviderExecutionService - centralized AI provider execution.

Centralizes provider lookup, timeout resolution and the cooperative
cancellation that lets a caller abandon a slow provider call.
"""

import logging
import threading
import time
from concurrent.futures import Future, wait
from typing import Any

from aiproj.domain.errors import AiProviderErrorType, ProviderError
from aiproj.domain.models.generation import ProviderOption
from aiproj.domain.providers.ai_provider import AIProvider
from aiproj.domain.providers.provider_factory import ProviderFactory

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.05  # seconds between cancel checks
DEFAULT_STOP_GRACE = 5.0  # seconds a stopped provider gets to exit


class ProviderCancelled(Exception):
    """Raised when the caller cancels while a provider call is in flight."""
    pass


class ProviderExecutionService:
    """Service for executing AI providers.

    Centralizes:
    - Provider creation via factory with per-provider config
    - Timeout resolution (explicit override, else provider metadata)
    - Running the blocking provider call on a worker thread while the caller
      polls for cancellation and the response deadline
    """

    def __init__(
        self,
        providers_config: dict[str, dict[str, Any]] | None = None,
        *,
        response_timeout: float | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stop_grace: float = DEFAULT_STOP_GRACE,
    ) -> None:
        self.providers_config = providers_config or {}
        self.response_timeout = response_timeout
        self.poll_interval = poll_interval
        self.stop_grace = stop_grace

    def create_provider(self, provider_key: str) -> AIProvider:
        """Create the provider registered under ``provider_key``.

        Raises:
            KeyError: If provider_key is not registered
            ValueError: If the provider rejects its configuration
        """
        return ProviderFactory.create(provider_key, self.providers_config.get(provider_key))

    def resolve_timeout(self, provider: AIProvider) -> float:
        if self.response_timeout is not None:
            return self.response_timeout
        return float(provider.get_metadata().get("default_response_timeout", 300))

    def execute(
        self,
        provider: AIProvider,
        prompt: str,
        option: ProviderOption,
        *,
        cancel_event: threading.Event | None = None,
        system_prompt: str | None = None,
    ) -> str:
        """Run ``provider.execute`` and wait for it.

        The provider gets its own stop event. When the caller cancels or the
        deadline passes, the event is set and the worker is given
        ``stop_grace`` seconds to wind down before it is abandoned.

        Returns:
            Raw response text

        Raises:
            ProviderCancelled: If ``cancel_event`` is set before the call returns
            ProviderError: If the provider fails or the response deadline passes
        """
        timeout = self.resolve_timeout(provider)
        future: Future[str] = Future()
        stop = threading.Event()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(
                    provider.execute(
                        prompt,
                        option,
                        system_prompt=system_prompt,
                        timeout=timeout,
                        cancel_event=stop,
                    )
                )
            except BaseException as e:
                future.set_exception(e)

        # Daemon so a provider that ignores its stop event never keeps the interpreter alive
        worker = threading.Thread(
            target=run,
            name=f"provider-{provider.get_metadata().get('name', 'unknown')}",
            daemon=True,
        )
        worker.start()

        deadline = time.monotonic() + timeout
        while True:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Provider call cancelled; stopping worker")
                self._stop_worker(worker, stop)
                raise ProviderCancelled("Generation cancelled while waiting for the provider")

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._stop_worker(worker, stop)
                raise ProviderError(
                    f"Provider did not respond within {timeout:g}s",
                    AiProviderErrorType.TIMEOUT,
                )

            done, _ = wait([future], timeout=min(self.poll_interval, remaining))
            if done:
                return future.result()

    def _stop_worker(self, worker: threading.Thread, stop: threading.Event) -> None:
        stop.set()
        worker.join(self.stop_grace)
        if worker.is_alive():
            logger.warning(
                f"Provider worker {worker.name} still running {self.stop_grace:g}s after stop; abandoning it"
            )
