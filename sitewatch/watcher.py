# watcher.py
'''
Auto-regeneration lifecycle: IDLE → WATCHING → STOPPED.

Public call
-----------
    watch(options, site=None, diagnostics=None, command=None)
        • options     : merged option mapping (see WatchConfig.from_options)
        • site        : anything with source/config/theme/process(); built
                        from *command* as a CommandSite when omitted
        • diagnostics : Diagnostics; defaults to the ``verbose`` option
Blocks until SIGINT/SIGTERM and exits with status 0, unless ``serving`` is
set, in which case it returns the running Watcher immediately.
'''

from __future__ import annotations

import enum
import functools
import os
import signal
import threading
from typing import Any, Callable, List, Mapping, Optional, Pattern

from .config import Diagnostics, WatchConfig
from .log import flush_logging, get_logger
from .paths import ignore_patterns, watch_roots
from .regenerate import handle_changes
from .site import CommandSite
from .site_watchdog import subscribe as watchdog_subscribe
from .theme import find_theme_path

log = get_logger(__name__)

STOP_SIGNALS = tuple(
  getattr(signal, name) for name in ('SIGINT', 'SIGTERM') if hasattr(signal, name)
)
# wake-up period of the otherwise idle wait
_WAIT_SLICE = 1000.0


class WatchState(enum.Enum):
  IDLE = 'idle'
  WATCHING = 'watching'
  STOPPED = 'stopped'


class Watcher:
  def __init__(
    self,
    config: WatchConfig,
    site: Any,
    diagnostics: Optional[Diagnostics] = None,
    subscribe: Callable[..., Any] = watchdog_subscribe,
  ) -> None:
    self.config = config
    self.site = site
    self.diagnostics = diagnostics or Diagnostics(verbose=config.verbose)
    self.state = WatchState.IDLE
    self.roots: List[Any] = []
    self.ignore: List[Pattern[Any]] = []
    self.subscription: Any = None
    self._subscribe = subscribe
    self._cancel = threading.Event()
    self._lock = threading.Lock()

  # ───────────────────────────────────────────────────────────────────────────
  # Start / stop
  # ───────────────────────────────────────────────────────────────────────────
  def start(self) -> None:
    if self.state is not WatchState.IDLE:
      raise RuntimeError(f'watcher already {self.state.value}')
    self.roots = watch_roots(self.config, self.site, find_theme_path(self.site))
    self.ignore = ignore_patterns(self.config)
    handler = functools.partial(handle_changes, self.site, trace=self.diagnostics.trace)
    self.subscription = self._subscribe(self.roots, self.ignore, self.config.force_polling, handler)
    self.state = WatchState.WATCHING

    log.info('Auto-regeneration:', 'enabled for')
    for root in self.roots:
      log.info('', os.fsdecode(root))

  def stop(self) -> None:
    with self._lock:
      if self.state is WatchState.STOPPED:
        return
      if self.subscription is not None:
        self.subscription.stop()
      self.state = WatchState.STOPPED

  def request_stop(self) -> None:
    '''Ask a blocked ``watch()`` to tear down; safe from signal handlers.'''
    self._cancel.set()

  # ───────────────────────────────────────────────────────────────────────────
  # Blocking
  # ───────────────────────────────────────────────────────────────────────────
  def _on_signal(self, signum, frame) -> None:
    self.request_stop()

  def _install_signal_handlers(self) -> dict:
    previous = {}
    if threading.current_thread() is not threading.main_thread():
      return previous
    for sig in STOP_SIGNALS:
      previous[sig] = signal.signal(sig, self._on_signal)
    return previous

  def _wait(self) -> None:
    while not self._cancel.wait(_WAIT_SLICE):
      pass

  def watch(self) -> 'Watcher':
    self.start()
    if self.config.serving:
      # the host owns shutdown
      return self

    previous = self._install_signal_handlers()
    try:
      self._wait()
    except KeyboardInterrupt:
      pass
    finally:
      for sig, handler in previous.items():
        # None: the old handler was not installed from Python
        signal.signal(sig, signal.SIG_DFL if handler is None else handler)

    self.stop()
    log.info('', 'Halting auto-regeneration.')
    flush_logging()
    raise SystemExit(0)


def watch(
  options: Mapping[str, Any],
  site: Any = None,
  diagnostics: Optional[Diagnostics] = None,
  command: Any = None,
  subscribe: Callable[..., Any] = watchdog_subscribe,
) -> Watcher:
  config = WatchConfig.from_options(options)
  diagnostics = diagnostics or Diagnostics(verbose=config.verbose)
  diagnostics.configure()
  if site is None:
    if command is None:
      raise ValueError('either a site or a build command is required')
    site = CommandSite(config.source, command)
  return Watcher(config, site, diagnostics, subscribe=subscribe).watch()
