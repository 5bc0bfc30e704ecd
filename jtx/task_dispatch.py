"""
Task Dispatcher Module
A ticket-based execution engine running blocking database calls on a
thread pool. Callers get a Future back and may register a notify
callback that receives the result.
"""

import sys
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, Future, wait
from datetime import datetime
from typing import Callable, Any, Dict, Optional


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] TASKS: {msg}", file=sys.stderr)


# --- Private Implementation ---

class _DispatcherEngine:
    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="TaskWorker"
        )
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(self, func: Callable, notify: Optional[Callable[[Any], None]],
               *args, **kwargs) -> tuple[str, Future]:
        ticket = str(uuid.uuid4())

        def _wrapper(f: Future):
            with self._lock:
                # If ticket was removed via cancel_task, ignore the completion
                if self._pending.pop(ticket, None) is None:
                    return
            if notify is None or f.cancelled():
                return
            exc = f.exception()
            if exc is not None:
                _debug_print(f"Task {ticket} failed: {exc}")
                return
            notify(f.result())

        future = self._executor.submit(func, *args, **kwargs)
        with self._lock:
            self._pending[ticket] = future
        future.add_done_callback(_wrapper)
        return ticket, future

    def pending(self) -> list[Future]:
        with self._lock:
            return list(self._pending.values())

    def is_pending(self, ticket: str) -> bool:
        with self._lock:
            return ticket in self._pending

    def cancel(self, ticket: str) -> bool:
        with self._lock:
            future = self._pending.pop(ticket, None)
        if future is None:
            return False
        return future.cancel()  # Only stops if task hasn't started

    def shutdown(self, wait: bool) -> None:
        self._executor.shutdown(wait=wait)


# Internal singleton, created on first use
_instance: Optional[_DispatcherEngine] = None
_instance_lock = threading.Lock()


def _get_engine() -> _DispatcherEngine:
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = _DispatcherEngine()
        return _instance


# --- Public API ---

def submit_task(func: Callable, *args, notify: Optional[Callable[[Any], None]] = None,
                **kwargs) -> Future:
    """Run func(*args, **kwargs) in the background and return its Future."""
    _, future = _get_engine().submit(func, notify, *args, **kwargs)
    return future


def dispatch_task(notify: Callable[[Any], None], func: Callable, *args, **kwargs) -> str:
    """Dispatches a task and returns a ticket ID."""
    ticket, _ = _get_engine().submit(func, notify, *args, **kwargs)
    return ticket


def is_pending(ticket: str) -> bool:
    """Check if a ticket is currently active."""
    return _get_engine().is_pending(ticket)


def count_pending_tasks() -> int:
    return len(_get_engine().pending())


def cancel_task(ticket: str) -> bool:
    """Cancel a task that has not started yet."""
    return _get_engine().cancel(ticket)


def wait_for_tasks(timeout: Optional[float] = None) -> bool:
    """
    Block until all dispatched tasks are finished.

    Returns True if all tasks finished, False if it timed out.
    """
    _, not_done = wait(_get_engine().pending(), timeout=timeout)
    return not not_done


def shutdown_tasks(wait: bool = False) -> None:
    """Closes the background thread pool."""
    global _instance
    with _instance_lock:
        if _instance is not None:
            _instance.shutdown(wait=wait)
            _instance = None
