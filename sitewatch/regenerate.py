# regenerate.py
'''
One change batch in, one rebuild out.

    coalesce(modified, added, removed)       ->  ChangeSet
    process(site, started, trace=False)      ->  RebuildOutcome   (never raises)
    handle_changes(site, modified, added, removed, trace=False)
        • what the subscription calls; bind *site* with functools.partial
'''

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence

from .log import get_logger
from .paths import normalize_encoding

log = get_logger(__name__)

TIME_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass
class ChangeSet:
  paths: List[Any]
  timestamp: datetime
  # monotonic twin of timestamp, for measuring the rebuild
  started: float

  @property
  def count(self) -> int:
    return len(self.paths)

  def relative_paths(self, source: Any) -> List[Any]:
    '''
    Paths with the ``"{source}/"`` prefix sliced off.  Paths from a watch
    root outside source keep their absolute form.
    '''
    prefix = source + ('/' if isinstance(source, str) else b'/')
    # event paths arrive as str whatever type the source is
    paths = [normalize_encoding(p, source) for p in self.paths]
    return [p[len(prefix):] if p.startswith(prefix) else p for p in paths]


@dataclass
class RebuildOutcome:
  ok: bool
  elapsed: Optional[float] = None
  error: Optional[str] = None


def coalesce(
  modified: Sequence[Any],
  added: Sequence[Any],
  removed: Sequence[Any],
  now: Optional[datetime] = None,
) -> ChangeSet:
  started = time.monotonic()
  timestamp = now or datetime.now()
  return ChangeSet([*modified, *added, *removed], timestamp, started)


def log_changes(changes: ChangeSet, source: Any) -> None:
  log.info('Regenerating:', f'{changes.count} file(s) changed at {changes.timestamp.strftime(TIME_FORMAT)}')
  for path in changes.relative_paths(source):
    log.info('', os.fsdecode(path))


def process(site: Any, started: float, trace: bool = False) -> RebuildOutcome:
  '''Run ``site.process()`` once; every failure becomes two warnings.'''
  try:
    site.process()
  except Exception as exc:
    log.warn('Error:', str(exc))
    log.warn('Error:', 'Run with --trace for more information.')
    if trace:
      log.warn('Error:', 'Traceback follows', exc_info=True)
    outcome = RebuildOutcome(ok=False, error=str(exc))
  else:
    elapsed = time.monotonic() - started
    log.info('', f'...done in {elapsed} seconds.')
    outcome = RebuildOutcome(ok=True, elapsed=elapsed)
  log.info('')
  return outcome


def handle_changes(
  site: Any,
  modified: Sequence[Any],
  added: Sequence[Any],
  removed: Sequence[Any],
  trace: bool = False,
) -> RebuildOutcome:
  changes = coalesce(modified, added, removed)
  log_changes(changes, site.source)
  return process(site, changes.started, trace=trace)
