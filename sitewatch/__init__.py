# sitewatch/__init__.py
from importlib.metadata import version, PackageNotFoundError

try:
  __version__ = version(__name__)
except PackageNotFoundError:      # development mode
  __version__ = '0.0.0.dev0'

from .config import WatchConfig, Diagnostics                   # re-export
from .paths import ignore_patterns, watch_roots                # re-export
from .regenerate import coalesce, process, handle_changes      # re-export
from .site import BuildError, CommandSite, Theme               # re-export
from .site_watchdog import subscribe                           # re-export
from .watcher import Watcher, WatchState, watch                # re-export

__all__ = [
  'WatchConfig', 'Diagnostics',
  'ignore_patterns', 'watch_roots',
  'coalesce', 'process', 'handle_changes',
  'BuildError', 'CommandSite', 'Theme',
  'subscribe',
  'Watcher', 'WatchState', 'watch',
]
