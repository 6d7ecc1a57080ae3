#!/usr/bin/env python3
"""
Sequential Event Dispatcher
A FIFO queue with a single consumer task. Each handler runs to completion
(storage I/O included) before the next event is taken from the queue, so
handlers never need reentrancy guards.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from ..log_manager import get_logger


Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


class EventDispatcher:
    """
    Routes events by name to one async handler each.

    Unknown events are dropped. A handler that raises is logged and the
    dispatcher moves on to the next event.
    """

    def __init__(self):
        self.logger = get_logger('EventDispatcher')
        self.handlers: Dict[str, Handler] = {}
        self.queue: "asyncio.Queue[Optional[Tuple[str, Dict[str, Any]]]]" = asyncio.Queue()
        self.processed = 0
        self.failed = 0
        self._task: Optional[asyncio.Task] = None

    def register(self, event: str, handler: Handler):
        self.handlers[event] = handler

    def put(self, event: str, data: Dict[str, Any]):
        """Enqueue an event; safe to call from the transport's reader task"""
        self.queue.put_nowait((event, data))

    async def dispatch(self, event: str, data: Dict[str, Any]) -> Any:
        """Run the handler of one event and return its result"""
        handler = self.handlers.get(event)
        if handler is None:
            self.logger.debug(f"No handler for {event}, dropped")
            return None
        try:
            return await handler(data)
        except Exception as e:
            self.failed += 1
            self.logger.error(f"Handler for {event} failed: {e}", exc_info=True)
            return None
        finally:
            self.processed += 1

    async def run(self):
        """Consume the queue until stop() is called"""
        while True:
            item = await self.queue.get()
            try:
                if item is None:
                    break
                await self.dispatch(*item)
            finally:
                self.queue.task_done()

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        """Drain what is already queued, then stop the consumer"""
        if self._task is None:
            return
        self.queue.put_nowait(None)
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.logger.info(f"Dispatcher stopped: {self.processed} events, {self.failed} failed")
