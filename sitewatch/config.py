# config.py
'''
Immutable watch configuration.

    WatchConfig.from_options(options)  ->  WatchConfig
        • options : merged CLI / site-config mapping with the keys
                    source, destination, watch_dirs, exclude,
                    force_polling, verbose, serving
    Diagnostics(verbose, trace).configure()
        • installs log output; replaces any process-wide debug toggles
'''

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, TextIO, Tuple

from .log import setup_logging

# site config files that never trigger a rebuild
CONFIG_EXTENSIONS = ('yml', 'yaml', 'toml')
# generated at the site root by incremental builds
METADATA_FILE = '.site-metadata'
DEFAULT_DESTINATION = '_site'


def _as_tuple(value: Any) -> Tuple[Any, ...]:
  '''``None`` → (), scalar → (scalar,), sequence → tuple.'''
  if value is None:
    return ()
  if isinstance(value, (str, bytes, os.PathLike)):
    return (value,)
  return tuple(value)


def _expand(path: Any) -> Any:
  if isinstance(path, os.PathLike):
    path = os.fspath(path)
  return os.path.abspath(os.path.expanduser(path))


@dataclass(frozen=True)
class WatchConfig:
  source: Any
  destination: Any
  watch_dirs: Tuple[Any, ...] = ()
  excludes: Tuple[Any, ...] = ()
  force_polling: bool = False
  verbose: bool = False
  serving: bool = False

  @classmethod
  def from_options(cls, options: Mapping[str, Any]) -> 'WatchConfig':
    source = _expand(options.get('source') or os.curdir)
    destination = options.get('destination')
    if destination is None:
      name = DEFAULT_DESTINATION if isinstance(source, str) else os.fsencode(DEFAULT_DESTINATION)
      destination = os.path.join(source, name)
    return cls(
      source=source,
      destination=_expand(destination),
      watch_dirs=tuple(_expand(d) for d in _as_tuple(options.get('watch_dirs'))),
      # excludes stay as given; they are sanitized against source later
      excludes=_as_tuple(options.get('exclude')),
      force_polling=bool(options.get('force_polling', False)),
      verbose=bool(options.get('verbose', False)),
      serving=bool(options.get('serving', False)),
    )


@dataclass(frozen=True)
class Diagnostics:
  '''Explicit logging setup handed to the watcher.'''
  verbose: bool = False
  trace: bool = False
  stream: Optional[TextIO] = field(default=None, compare=False)

  @property
  def level(self) -> int:
    return logging.DEBUG if self.verbose else logging.INFO

  def configure(self) -> None:
    setup_logging(self.level, self.stream)
    # watchdog's own emitter chatter only when asked for
    logging.getLogger('watchdog').setLevel(self.level if self.verbose else logging.WARNING)
