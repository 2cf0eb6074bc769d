"""
Host environment capabilities used by the login flow.

The runtime hosting the client supplies a one-shot exchange code that the
backend trades for a bearer credential.
"""

import logging
from typing import Awaitable, Callable, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class LoginCodeProvider(Protocol):
    """Supplies one-shot exchange codes for login."""

    async def acquire_code(self) -> Optional[str]:
        ...


class StaticCodeProvider:
    """Returns the same configured code on every request."""

    def __init__(self, code: Optional[str]):
        self.code = code

    async def acquire_code(self) -> Optional[str]:
        return self.code


class CallbackCodeProvider:
    """Adapts an async callable into a code provider."""

    def __init__(self, callback: Callable[[], Awaitable[Optional[str]]]):
        self._callback = callback

    async def acquire_code(self) -> Optional[str]:
        return await self._callback()
