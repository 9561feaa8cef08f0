#!/usr/bin/env python3
"""
Coordinator - owns the persisted run state and the processed set, and
answers request/response messages from the page side.

Messages are plain dicts `{'type': ..., 'payload': {...}}`; every
response is `{'success': bool, 'data': ...}` or `{'success': False,
'error': str}`. STATE_UPDATE and LOG are pushed to subscribers.
"""

import asyncio
import inspect
import logging
import random
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from autocart.core.config import AutoCartConfig
from autocart.core.errors import CoordinatorError, NavigationError
from autocart.core.logging_config import ActivityLog, level_for_severity
from autocart.core.retry import with_timeout
from autocart.state.models import RunState
from autocart.state.store import ProcessedTracker, RunStateStore
from autocart.utils.ecommerce_keywords import PRESET_KEYWORDS

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], Any]
Navigator = Callable[[str], Awaitable[Any]]


class MessageType(str, Enum):
    START = 'START'
    STOP = 'STOP'
    LOG = 'LOG'
    STATE_UPDATE = 'STATE_UPDATE'
    NAVIGATE = 'NAVIGATE'
    GET_STATE = 'GET_STATE'
    GET_CONFIG = 'GET_CONFIG'
    ADD_PROCESSED = 'ADD_PROCESSED'
    IS_PROCESSED = 'IS_PROCESSED'
    CLEAR_PROCESSED = 'CLEAR_PROCESSED'


def random_keyword(rng: Optional[random.Random] = None, exclude: Optional[str] = None) -> str:
    """Pick a preset keyword, avoiding `exclude` for a few draws"""
    rng = rng or random
    keyword = rng.choice(PRESET_KEYWORDS)
    attempts = 0
    while keyword == exclude and attempts < 5:
        keyword = rng.choice(PRESET_KEYWORDS)
        attempts += 1
    return keyword


class Coordinator:
    def __init__(self, store: RunStateStore, tracker: ProcessedTracker, config: AutoCartConfig,
                 activity_log: Optional[ActivityLog] = None, rng: Optional[random.Random] = None):
        self.store = store
        self.tracker = tracker
        self.config = config
        self.activity_log = activity_log or ActivityLog(max_entries=config.max_log_entries)
        self.rng = rng or random.Random()
        self._listeners: List[Listener] = []
        self._navigator: Optional[Navigator] = None

        self._handlers = {
            MessageType.START: self._handle_start,
            MessageType.STOP: self._handle_stop,
            MessageType.LOG: self._handle_log,
            MessageType.STATE_UPDATE: self._handle_state_update,
            MessageType.NAVIGATE: self._handle_navigate,
            MessageType.GET_STATE: self._handle_get_state,
            MessageType.GET_CONFIG: self._handle_get_config,
            MessageType.ADD_PROCESSED: self._handle_add_processed,
            MessageType.IS_PROCESSED: self._handle_is_processed,
            MessageType.CLEAR_PROCESSED: self._handle_clear_processed,
        }

    # Wiring

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a push listener; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def attach_navigator(self, navigator: Navigator):
        self._navigator = navigator

    async def _broadcast(self, message: Dict[str, Any]):
        for listener in list(self._listeners):
            try:
                result = listener(message)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"COORDINATOR: listener failed on {message.get('type')}: {e}")

    # Dispatch

    async def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        raw_type = message.get('type')
        payload = message.get('payload') or {}

        try:
            message_type = MessageType(raw_type)
        except ValueError:
            return {'success': False, 'error': f'Unknown message type: {raw_type}'}

        try:
            return await self._handlers[message_type](payload)
        except Exception as e:
            logger.error(f"COORDINATOR: {message_type.value} failed: {e}")
            return {'success': False, 'error': str(e)}

    async def _handle_start(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        keyword = (payload.get('keyword') or '').strip() or random_keyword(self.rng)
        self.tracker.clear()
        state = self.store.update(
            is_running=True,
            search_term=keyword,
            current_product_index=0,
            cart_count=0,
            keyword_changed_at=time.time(),
        )
        await self._broadcast({'type': MessageType.STATE_UPDATE.value, 'payload': state.model_dump()})
        await self._record_log(f"Automation started, keyword: {keyword}", 'info')
        return {'success': True, 'data': state.model_dump()}

    async def _handle_stop(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        state = self.store.update(is_running=False)
        await self._broadcast({'type': MessageType.STATE_UPDATE.value, 'payload': state.model_dump()})
        await self._record_log("Automation stopped", 'warning')
        return {'success': True, 'data': state.model_dump()}

    async def _handle_log(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        entry = await self._record_log(str(payload.get('message', '')), payload.get('severity') or 'info')
        return {'success': True, 'data': entry}

    async def _handle_state_update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        state = self.store.update(**payload)
        await self._broadcast({'type': MessageType.STATE_UPDATE.value, 'payload': state.model_dump()})
        return {'success': True, 'data': state.model_dump()}

    async def _handle_navigate(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = payload.get('url')
        if not self.store.get().is_running:
            logger.debug(f"COORDINATOR: navigation to {url} ignored, not running")
            return {'success': True, 'data': False}
        if self._navigator is None:
            raise CoordinatorError("No navigator attached")

        try:
            await with_timeout(lambda: self._navigator(url), self.config.navigation_timeout,
                               f"navigation to {url}")
        except Exception as e:
            # The next page load re-enters the controller and self-corrects
            error = NavigationError(f"Navigation to {url} failed: {e}")
            await self._record_log(str(error), 'error')
            return {'success': True, 'data': False}
        return {'success': True, 'data': True}

    async def _handle_get_state(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {'success': True, 'data': self.store.get().model_dump()}

    async def _handle_get_config(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {'success': True, 'data': self.config.to_dict()}

    async def _handle_add_processed(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {'success': True, 'data': self.tracker.mark_processed(payload['product_id'])}

    async def _handle_is_processed(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {'success': True, 'data': self.tracker.is_processed(payload['product_id'])}

    async def _handle_clear_processed(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {'success': True, 'data': self.tracker.clear()}

    async def _record_log(self, message: str, severity: str) -> Dict[str, Any]:
        entry = self.activity_log.add(message, severity)
        logger.log(level_for_severity(entry.severity), message, extra={'activity_logged': True})
        await self._broadcast({'type': MessageType.LOG.value, 'payload': entry.to_dict()})
        return entry.to_dict()


class CoordinatorClient:
    """Page-side peer of the Coordinator"""

    def __init__(self, coordinator: Coordinator):
        self.coordinator = coordinator
        self._pending_logs: List[asyncio.Task] = []

    async def send(self, message_type: MessageType, payload: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.coordinator.handle_message({'type': message_type.value, 'payload': payload or {}})
        if not response.get('success'):
            raise CoordinatorError(response.get('error') or f"{message_type.value} failed")
        return response.get('data')

    async def get_state(self) -> RunState:
        return RunState.model_validate(await self.send(MessageType.GET_STATE))

    async def is_running(self) -> bool:
        return (await self.get_state()).is_running

    async def update_state(self, **changes) -> RunState:
        return RunState.model_validate(await self.send(MessageType.STATE_UPDATE, changes))

    async def get_config(self) -> Dict[str, Any]:
        return await self.send(MessageType.GET_CONFIG)

    async def is_processed(self, product_id: str) -> bool:
        return await self.send(MessageType.IS_PROCESSED, {'product_id': product_id})

    async def mark_processed(self, product_id: str) -> bool:
        return await self.send(MessageType.ADD_PROCESSED, {'product_id': product_id})

    async def clear_processed(self) -> int:
        return await self.send(MessageType.CLEAR_PROCESSED)

    def log(self, message: str, severity: str = 'info'):
        """Fire-and-forget; delivery order follows call order."""
        task = asyncio.ensure_future(self.send(MessageType.LOG, {'message': message, 'severity': severity}))
        self._pending_logs.append(task)
        task.add_done_callback(self._log_done)

    def _log_done(self, task: asyncio.Task):
        if task in self._pending_logs:
            self._pending_logs.remove(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"COORDINATOR: log delivery failed: {task.exception()}")

    async def flush_logs(self):
        if self._pending_logs:
            await asyncio.gather(*list(self._pending_logs), return_exceptions=True)

    async def navigate(self, url: str) -> bool:
        return await self.send(MessageType.NAVIGATE, {'url': url})

    async def start(self, keyword: Optional[str] = None) -> RunState:
        return RunState.model_validate(await self.send(MessageType.START, {'keyword': keyword}))

    async def stop(self) -> RunState:
        return RunState.model_validate(await self.send(MessageType.STOP))
