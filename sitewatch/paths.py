# paths.py
'''
Which directories to watch and which paths inside them to ignore.

API
---
watch_roots(config, site, theme_root)  ->  list of absolute directories
ignore_patterns(config)                ->  list of compiled ``re.Pattern``
    • each pattern is ``^<path relative to source>``, anchored at the start
    • directory patterns match the directory and everything beneath it
    • the metadata file pattern is always last
to_exclude(config)                     ->  excluded absolute paths, in order
sanitized_path(base, questionable)     ->  questionable, forced under base
'''

from __future__ import annotations

import os
import re
import unicodedata
from typing import Any, AnyStr, List, Optional, Pattern

from .config import CONFIG_EXTENSIONS, METADATA_FILE, WatchConfig, _as_tuple
from .log import get_logger

log = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# str / bytes helpers: every path is handled in the type of the source
# ─────────────────────────────────────────────────────────────────────────────
def _lit(ref: AnyStr, text: str) -> AnyStr:
  '''*text* as a literal of the same type as *ref*.'''
  return text if isinstance(ref, str) else os.fsencode(text)  # type: ignore[return-value]


def normalize_encoding(path: Any, like: AnyStr) -> AnyStr:
  '''
  Re-encode *path* so it compares byte-for-byte with *like*.

  bytes sources get ``os.fsencode``; str sources get ``os.fsdecode`` plus
  the Unicode normal form the source itself is written in.
  '''
  if isinstance(path, os.PathLike):
    path = os.fspath(path)
  if isinstance(like, bytes):
    return os.fsencode(path)
  text = os.fsdecode(path)
  for form in ('NFC', 'NFD'):
    if unicodedata.is_normalized(form, like):
      return unicodedata.normalize(form, text)  # type: ignore[return-value]
  return text  # type: ignore[return-value]


def sanitized_path(base: AnyStr, questionable: Optional[Any]) -> AnyStr:
  '''
  Join *questionable* onto *base* without ever leaving *base*.

  Absolute paths already under *base* are returned as-is; any other path,
  relative, absolute or ``..``-laden, is collapsed and re-rooted under *base*.
  '''
  if questionable is None:
    return base
  clean = normalize_encoding(questionable, base)
  if clean == base:
    return base
  root = _lit(base, '/')
  if clean.startswith(_lit(base, '~')):
    clean = root + clean
  # collapse .. against a virtual root so nothing escapes
  clean = os.path.normpath(os.path.join(root, clean))
  clean = root + clean.lstrip(root)
  if clean == base or clean.startswith(os.path.join(base, base[:0])):
    return clean
  clean = os.path.splitdrive(clean)[1]
  return os.path.join(base, clean.lstrip(root))


# ─────────────────────────────────────────────────────────────────────────────
# Excluded paths
# ─────────────────────────────────────────────────────────────────────────────
def config_files(config: WatchConfig) -> List[Any]:
  return [sanitized_path(config.source, f'_config.{ext}') for ext in CONFIG_EXTENSIONS]


def custom_excludes(config: WatchConfig) -> List[Any]:
  return [sanitized_path(config.source, e) for e in config.excludes]


def to_exclude(config: WatchConfig) -> List[Any]:
  return [*config_files(config), config.destination, *custom_excludes(config)]


def _ignore_pattern(path: Any, source: AnyStr) -> Optional[Pattern[AnyStr]]:
  '''Pattern for one excluded *path*, or None when it cannot apply.'''
  try:
    absolute = os.path.realpath(normalize_encoding(path, source))
    if not os.path.exists(absolute):
      return None
    relative = os.path.relpath(absolute, source)
  # NUL bytes, unencodable surrogates, a different drive on Windows
  except (ValueError, OSError) as exc:
    log.debug('Watcher:', f'Could not find a relative path for {path!r}: {exc}')
    return None
  parent = _lit(source, os.pardir)
  if relative == parent or relative.startswith(parent + _lit(source, os.sep)):
    return None
  pattern = _lit(source, '^') + re.escape(relative)
  if os.path.isdir(absolute):
    # the directory itself and everything beneath it
    pattern += _lit(source, '(?:') + re.escape(_lit(source, os.sep)) + _lit(source, '|$)')
  return re.compile(pattern)


def ignore_patterns(config: WatchConfig) -> List[Pattern[Any]]:
  source = os.path.realpath(config.source)
  patterns: List[Pattern[Any]] = []
  for path in to_exclude(config):
    pattern = _ignore_pattern(path, source)
    if pattern is not None:
      log.debug('Watcher:', f'Ignoring {os.fsdecode(pattern.pattern)}')
      patterns.append(pattern)
  patterns.append(re.compile(_lit(source, '^') + re.escape(_lit(source, METADATA_FILE))))
  return patterns


# ─────────────────────────────────────────────────────────────────────────────
# Watch roots
# ─────────────────────────────────────────────────────────────────────────────
def site_watch_dirs(site: Any, source: Any) -> List[Any]:
  '''``watch_dirs`` from the site's own config, relative ones under source.'''
  site_config = getattr(site, 'config', None) or {}
  return [
    os.path.join(source, normalize_encoding(d, source))
    for d in _as_tuple(site_config.get('watch_dirs'))
  ]


def watch_roots(config: WatchConfig, site: Any = None, theme_root: Optional[Any] = None) -> List[Any]:
  roots = [
    config.source,
    *config.watch_dirs,
    *site_watch_dirs(site, config.source),
    theme_root,
  ]
  return [r for r in roots if r is not None]
