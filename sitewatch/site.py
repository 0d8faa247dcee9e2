# site.py
'''
The site the watcher rebuilds.

The watcher only needs four things from a site:
    site.source     : root directory of the site sources
    site.config     : mapping; ``watch_dirs`` adds extra watch roots
    site.theme      : Theme(name, root) or None
    site.process()  : rebuild; raises BuildError (or anything) on failure

``CommandSite`` satisfies this by running an external build command.
'''

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Union


class BuildError(Exception):
  '''Raised by ``Site.process`` when the build does not succeed.'''


@dataclass(frozen=True)
class Theme:
  name: str
  root: Optional[str] = None


class Site(Protocol):
  source: Any
  config: Dict[str, Any]
  theme: Optional[Theme]

  def process(self) -> None: ...


@dataclass
class CommandSite:
  source: Any
  command: Union[str, Sequence[str]]
  config: Dict[str, Any] = field(default_factory=dict)
  theme: Optional[Theme] = None
  tail_lines: int = 20

  def process(self) -> None:
    try:
      proc = subprocess.run(
        self.command,
        cwd=self.source,
        shell=isinstance(self.command, str),
        capture_output=True,
        text=True,
      )
    except OSError as exc:
      raise BuildError(f'could not run build command: {exc}') from exc
    if proc.returncode != 0:
      tail = '\n'.join((proc.stderr or proc.stdout).splitlines()[-self.tail_lines:])
      raise BuildError(f'build command exited with status {proc.returncode}'
                       + (f'\n{tail}' if tail else ''))
