from typing import Awaitable, Callable, List, Optional
import asyncio
import logging

from frequency.utils.exceptions import NotAuthenticated

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[str]], Awaitable[None]]


class IdentityContext:
    """Holds the signed-in user id and tells listeners when it changes.

    Projections subscribe here instead of reading a global: they load when an
    identity resolves and drop their state on sign-out.
    """

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id
        self._listeners: List[IdentityListener] = []

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener, returns a callable that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def resolve(self, user_id: str):
        """Provider callback for a signed-in user"""
        if user_id == self._user_id:
            return
        self._user_id = user_id
        logger.info(f"Identity resolved: {user_id}")
        await self._notify()

    async def clear(self):
        """Provider callback for sign-out"""
        if self._user_id is None:
            return
        self._user_id = None
        logger.info("Identity cleared")
        await self._notify()

    def require(self) -> str:
        if self._user_id is None:
            raise NotAuthenticated()
        return self._user_id

    async def _notify(self):
        results = await asyncio.gather(
            *(listener(self._user_id) for listener in list(self._listeners)),
            return_exceptions=True
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Identity listener failed: {result}")
