# site_watchdog.py
'''
Batched directory subscriptions based on the `watchdog` library.

API
---
subscribe(roots, ignore, force_polling, on_event, latency=0.1)  ->  Subscription
    • roots         : directories to watch recursively (deduped, nested
                      roots fold into their ancestor, missing ones skipped)
    • ignore        : compiled patterns searched against each path
                      relative to the root it was seen under
    • force_polling : stat-polling observer instead of the OS backend
    • on_event      : callback(modified, added, removed), lists of
                      absolute file paths, one call per batch; a
                      directory deleted or moved away is listed as removed
Returns:
    Subscription    : .stop() halts the observer and dispatcher cleanly

Callbacks run on one dispatcher thread, so a batch (and the rebuild it
triggers) finishes before the next one is delivered.
'''

from __future__ import annotations

import os
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from .log import get_logger

log = get_logger(__name__)

OnEvent = Callable[[List[str], List[str], List[str]], Any]

MODIFIED, ADDED, REMOVED = 'modified', 'added', 'removed'


def unique_roots(roots: Iterable[Any]) -> List[str]:
  '''Absolute, de-duplicated roots; a root inside another one is dropped.'''
  order = [os.path.abspath(os.fsdecode(r)) for r in roots]
  kept: List[str] = []
  for root in sorted(set(order), key=len):
    if not any(root == k or root.startswith(os.path.join(k, '')) for k in kept):
      kept.append(root)
  return sorted(kept, key=order.index)


def is_ignored(path: str, roots: Iterable[str], ignore: Iterable[Pattern[Any]]) -> bool:
  for root in roots:
    if path == root or path.startswith(os.path.join(root, '')):
      relative = path[len(os.path.join(root, '')):]
      break
  else:
    relative = path
  for pattern in ignore:
    subject = relative if isinstance(pattern.pattern, str) else os.fsencode(relative)
    if pattern.search(subject):
      return True
  return False


# ─────────────────────────────────────────────────────────────────────────────
# Batching: collapse a burst of events into one (modified, added, removed)
# ─────────────────────────────────────────────────────────────────────────────
class _Batch:
  def __init__(self) -> None:
    self._pending: Dict[str, str] = {}
    self._lock = threading.Lock()

  def record(self, kind: str, path: str) -> None:
    with self._lock:
      prev = self._pending.get(path)
      if prev == ADDED and kind == MODIFIED:
        return
      if prev == ADDED and kind == REMOVED:
        del self._pending[path]          # never existed as far as a build cares
        return
      if prev == REMOVED and kind == ADDED:
        kind = MODIFIED
      self._pending[path] = kind

  def drain(self) -> Dict[str, List[str]]:
    with self._lock:
      pending, self._pending = self._pending, {}
    out: Dict[str, List[str]] = {MODIFIED: [], ADDED: [], REMOVED: []}
    for path, kind in pending.items():
      out[kind].append(path)
    return out


class _ChangeHandler(FileSystemEventHandler):
  def __init__(self, roots: List[str], ignore: List[Pattern[Any]], batch: _Batch, wake: threading.Event) -> None:
    super().__init__()
    self._roots = roots
    self._ignore = ignore
    self._batch = batch
    self._wake = wake

  def _record(self, kind: str, path: Any) -> None:
    path = os.fsdecode(path)
    if is_ignored(path, self._roots, self._ignore):
      return
    self._batch.record(kind, path)
    self._wake.set()

  def _inside(self, path: Any) -> bool:
    path = os.fsdecode(path)
    return any(path == r or path.startswith(os.path.join(r, '')) for r in self._roots)

  def _on_directory_event(self, event: FileSystemEvent) -> None:
    # the backend may not report the files of a directory that left the tree
    if event.event_type == 'deleted':
      self._record(REMOVED, event.src_path)
    elif event.event_type == 'moved':
      self._record(REMOVED, event.src_path)
      if event.dest_path and self._inside(event.dest_path):
        self._record(ADDED, event.dest_path)

  def on_any_event(self, event: FileSystemEvent) -> None:  # type: ignore[override]
    if event.is_directory:
      self._on_directory_event(event)
      return
    if event.event_type == 'created':
      self._record(ADDED, event.src_path)
    elif event.event_type == 'modified':
      self._record(MODIFIED, event.src_path)
    elif event.event_type == 'deleted':
      self._record(REMOVED, event.src_path)
    elif event.event_type == 'moved':
      self._record(REMOVED, event.src_path)
      if self._inside(event.dest_path):
        self._record(ADDED, event.dest_path)


# ─────────────────────────────────────────────────────────────────────────────
# Subscription handle
# ─────────────────────────────────────────────────────────────────────────────
class Subscription:
  def __init__(
    self,
    roots: Iterable[Any],
    ignore: Iterable[Pattern[Any]],
    on_event: OnEvent,
    *,
    force_polling: bool = False,
    latency: float = 0.1,
    poll_interval: float = 1.0,
  ) -> None:
    self.roots = unique_roots(roots)
    self.ignore = list(ignore)
    self.force_polling = force_polling
    self.latency = latency
    self._on_event = on_event
    self._batch = _Batch()
    self._wake = threading.Event()
    self._stopped = threading.Event()
    self._observer = PollingObserver(timeout=poll_interval) if force_polling else Observer()
    self._dispatcher: Optional[threading.Thread] = None

  def start(self) -> 'Subscription':
    handler = _ChangeHandler(self.roots, self.ignore, self._batch, self._wake)
    for root in self.roots:
      if not os.path.isdir(root):
        log.warn('Watcher:', f'Skipping missing watch root {root}')
        continue
      self._observer.schedule(handler, root, recursive=True)
    self._observer.start()
    self._dispatcher = threading.Thread(target=self._dispatch_loop, name='sitewatch-dispatch', daemon=True)
    self._dispatcher.start()
    return self

  def _dispatch_loop(self) -> None:
    while not self._stopped.is_set():
      if not self._wake.wait(0.5):
        continue
      # let the rest of the burst arrive
      if self._stopped.wait(self.latency):
        break
      self._wake.clear()
      changes = self._batch.drain()
      if not any(changes.values()):
        continue
      try:
        self._on_event(changes[MODIFIED], changes[ADDED], changes[REMOVED])
      except Exception:
        log.warn('Watcher:', 'change handler failed', exc_info=True)

  def stop(self) -> None:
    if self._stopped.is_set():
      return
    self._stopped.set()
    self._wake.set()
    if self._observer.is_alive():
      self._observer.stop()
      self._observer.join()
    if self._dispatcher is not None and self._dispatcher is not threading.current_thread():
      self._dispatcher.join()

  def __enter__(self) -> 'Subscription':
    return self

  def __exit__(self, *exc: object) -> None:
    self.stop()


def subscribe(
  roots: Iterable[Any],
  ignore: Iterable[Pattern[Any]],
  force_polling: bool,
  on_event: OnEvent,
  *,
  latency: float = 0.1,
  poll_interval: float = 1.0,
) -> Subscription:
  return Subscription(
    roots, ignore, on_event,
    force_polling=force_polling, latency=latency, poll_interval=poll_interval,
  ).start()
