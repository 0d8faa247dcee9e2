# theme.py
'''
find_theme_path(site) -> str | None

A theme is watched only when it lives in the user's tree.  Themes resolved
out of a package cache or a vendor directory are read-only dependencies.

The two conventional markers are the hidden gem cache (``.gem``) and a
``vendor`` directory.  ``site-packages`` and ``node_modules`` are skipped too,
being the same kind of install location for Python and JS themes.
'''

from __future__ import annotations

from typing import Any, Optional

from .log import get_logger

log = get_logger(__name__)

VENDOR_MARKERS = ('.gem', 'vendor', 'site-packages', 'node_modules')


def is_vendored(root: str) -> bool:
  return any(marker in str(root) for marker in VENDOR_MARKERS)


def find_theme_path(site: Any) -> Optional[str]:
  theme = getattr(site, 'theme', None)
  if theme is None or not getattr(theme, 'root', None):
    log.info('Locating Theme:', 'No theme found to watch')
    return None
  if is_vendored(theme.root):
    log.info('Locating Theme:', 'Theme not local, skipping watch')
    log.info('', f'Point the theme at a local checkout (e.g. --theme-root ~/path/to/{theme.name}) for local dev')
    return None
  log.info('Locating Theme:', 'Local theme found')
  return theme.root
