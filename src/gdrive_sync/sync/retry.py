"""Status-code driven retry policy for Drive calls."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..exceptions import RemoteCallError
from ..remote.models import ApiResponse

logger = logging.getLogger(__name__)

MAX_SERVER_ERROR_RETRIES = 10


def is_retriable(status: int) -> bool:
    """Redirects and rate limiting are always retried."""
    return 300 <= status < 400 or status == 429


class RetryExecutor:
    """Run a remote call until it succeeds or fails permanently.

    Policy on each response:

    * ``status < 300``: success, the payload is returned.
    * 3xx or 429: retried after ``retransmit_interval`` milliseconds, without limit.
    * 5xx: retried up to ``max_server_errors`` times.
    * anything else: :class:`RemoteCallError` carrying the status text.

    Exceptions raised by the call itself (transport failures) propagate
    immediately. Waiting uses ``asyncio.sleep`` so independent retry
    sequences interleave freely.
    """

    def __init__(self, retransmit_interval: float = 1000,
                 max_server_errors: int = MAX_SERVER_ERROR_RETRIES):
        """Initialize the executor.

        Args:
            retransmit_interval: Delay between attempts in milliseconds
            max_server_errors: Number of 5xx responses retried before giving up
        """
        self.retransmit_interval = retransmit_interval
        self.max_server_errors = max_server_errors

    async def run(self, call: Callable[[], Awaitable[ApiResponse]],
                  pre_retry: Optional[Callable[[], Awaitable[Any]]] = None) -> Any:
        """Issue ``call()`` and retry it according to the policy.

        Args:
            call: Factory issuing a fresh request on every invocation
            pre_retry: Awaited before each retry delay; its exception aborts the sequence

        Returns:
            Payload of the first successful response
        """
        server_errors = 0
        while True:
            response = await call()
            if response.status < 300:
                return response.payload

            logger.debug(f"Remote call returned {response.status} {response.status_text}")
            if response.status >= 500 and server_errors < self.max_server_errors:
                server_errors += 1
            elif not is_retriable(response.status):
                raise RemoteCallError(response.status_text, status=response.status)

            if pre_retry is not None:
                await pre_retry()
            await asyncio.sleep(self.retransmit_interval / 1000)
