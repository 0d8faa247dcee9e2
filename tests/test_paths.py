# test_paths.py
'''
Tests for paths.ignore_patterns / watch_roots / sanitized_path.

Two-space indent, single quotes everywhere.
'''

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from sitewatch import paths
from sitewatch.config import WatchConfig
from sitewatch.site import Theme


# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture
def source(tmp_path: Path) -> Path:
  s = tmp_path / 's'
  s.mkdir()
  return s


def _config(source: Path, **options) -> WatchConfig:
  return WatchConfig.from_options({'source': str(source), **options})


def _matches(patterns, subject) -> bool:
  return any(p.match(subject) for p in patterns)


class _Site:
  def __init__(self, config=None, theme=None):
    self.config = config or {}
    self.theme = theme


# ─────────────────────────────────────────────────────────────────────────────
# 1. End-to-end
# ─────────────────────────────────────────────────────────────────────────────
def test_end_to_end_roots_and_patterns(source: Path):
  (source / '_site').mkdir()
  (source / 'tmp').mkdir()
  cfg = _config(
    source,
    destination=str(source / '_site'),
    exclude=[str(source / 'tmp')],
    watch_dirs=[],
  )

  assert paths.watch_roots(cfg, _Site(), None) == [os.path.abspath(source)]

  patterns = paths.ignore_patterns(cfg)
  assert len(patterns) == 3
  assert _matches(patterns, '_site/index.html')
  assert _matches(patterns, 'tmp/scratch.md')
  assert _matches(patterns, '.site-metadata')
  assert not _matches(patterns, 'index.md')
  assert not _matches(patterns, '_posts/x.md')


# ─────────────────────────────────────────────────────────────────────────────
# 2. Dropped paths
# ─────────────────────────────────────────────────────────────────────────────
def test_nonexistent_paths_emit_nothing(source: Path):
  cfg = _config(source, exclude=['missing', 'also/missing.txt'])
  patterns = paths.ignore_patterns(cfg)
  # destination (_site) was never built either
  assert len(patterns) == 1
  assert patterns[0].match('.site-metadata')


def test_destination_outside_source_is_dropped(tmp_path: Path, source: Path):
  out = tmp_path / 'out'
  out.mkdir()
  patterns = paths.ignore_patterns(_config(source, destination=str(out)))
  assert len(patterns) == 1


@pytest.mark.skipif(sys.platform == 'win32', reason='symlinks need privileges')
def test_exclude_resolving_outside_source_is_dropped(tmp_path: Path, source: Path):
  outside = tmp_path / 'elsewhere'
  outside.mkdir()
  (source / 'link').symlink_to(outside, target_is_directory=True)
  patterns = paths.ignore_patterns(_config(source, exclude=['link']))
  assert len(patterns) == 1
  assert not _matches(patterns, 'link/file.md')


def test_relpath_failure_is_swallowed(source: Path, monkeypatch):
  (source / 'tmp').mkdir()

  def boom(*_a, **_kw):
    raise ValueError('path is on mount C:, start on mount D:')

  monkeypatch.setattr(paths.os.path, 'relpath', boom)
  patterns = paths.ignore_patterns(_config(source, exclude=['tmp']))
  assert len(patterns) == 1


@pytest.mark.parametrize('bad', ['bad\x00name', 'bad\ud800name'])
def test_malformed_exclude_does_not_block_others(source: Path, bad):
  (source / '_site').mkdir()
  patterns = paths.ignore_patterns(_config(source, destination=str(source / 'public'), exclude=[bad, '_site']))
  assert len(patterns) == 2
  assert _matches(patterns, '_site/index.html')
  assert patterns[-1].match('.site-metadata')


# ─────────────────────────────────────────────────────────────────────────────
# 3. Pattern shape
# ─────────────────────────────────────────────────────────────────────────────
def test_directory_pattern_covers_dir_and_children(source: Path):
  (source / 'drafts' / 'deep').mkdir(parents=True)
  patterns = paths.ignore_patterns(_config(source, exclude=['drafts']))
  p = patterns[0]
  assert p.match('drafts')
  assert p.match('drafts/a.md')
  assert p.match('drafts/deep/b.md')
  assert not p.match('drafts-old/a.md')
  assert not p.match('draftsman.md')


def test_file_pattern_is_anchored_prefix(source: Path):
  (source / 'notes.txt').write_text('x', encoding='utf-8')
  p = paths.ignore_patterns(_config(source, exclude=['notes.txt']))[0]
  assert p.match('notes.txt')
  assert not p.match('sub/notes.txt')


def test_special_characters_are_escaped(source: Path):
  (source / 'a+b (1).md').write_text('x', encoding='utf-8')
  p = paths.ignore_patterns(_config(source, exclude=['a+b (1).md']))[0]
  assert p.match('a+b (1).md')
  assert not p.match('aab 1.md')


def test_config_files_are_excluded(source: Path):
  (source / '_config.yml').write_text('title: x\n', encoding='utf-8')
  (source / '_config.toml').write_text('title = "x"\n', encoding='utf-8')
  patterns = paths.ignore_patterns(_config(source))
  assert _matches(patterns, '_config.yml')
  assert _matches(patterns, '_config.toml')
  assert not _matches(patterns, '_config.yaml')
  assert len(patterns) == 3


def test_metadata_pattern_always_last(source: Path):
  (source / '_site').mkdir()
  patterns = paths.ignore_patterns(_config(source))
  assert patterns[-1].match('.site-metadata')


def test_bytes_source_yields_bytes_patterns(source: Path):
  (source / '_site').mkdir()
  cfg = WatchConfig.from_options({'source': os.fsencode(source)})
  patterns = paths.ignore_patterns(cfg)
  assert all(isinstance(p.pattern, bytes) for p in patterns)
  assert _matches(patterns, b'_site/index.html')
  assert _matches(patterns, b'.site-metadata')


# ─────────────────────────────────────────────────────────────────────────────
# 4. Encoding / sanitizing
# ─────────────────────────────────────────────────────────────────────────────
def test_normalize_encoding_follows_source_type():
  assert paths.normalize_encoding('/site/a', b'/site') == b'/site/a'
  assert paths.normalize_encoding(b'/site/a', '/site') == '/site/a'
  assert paths.normalize_encoding(Path('/site/a'), '/site') == '/site/a'


def test_normalize_encoding_uses_source_normal_form():
  decomposed = 'cafe\u0301'
  composed = 'caf\u00e9'
  assert paths.normalize_encoding(decomposed, '/s/' + composed) == composed
  assert paths.normalize_encoding(composed, '/s/' + decomposed) == decomposed


@pytest.mark.parametrize('questionable, expected', [
  (None, '/site'),
  ('/site', '/site'),
  ('tmp', '/site/tmp'),
  ('/site/tmp', '/site/tmp'),
  ('/etc/passwd', '/site/etc/passwd'),
  ('../../etc', '/site/etc'),
  ('a/../b', '/site/b'),
  ('~/x', '/site/~/x'),
])
def test_sanitized_path(questionable, expected):
  if sys.platform == 'win32':
    pytest.skip('posix paths')
  assert paths.sanitized_path('/site', questionable) == expected


def test_to_exclude_order(source: Path):
  cfg = _config(source, destination=str(source / 'out'), exclude=['tmp', 'drafts'])
  s = os.path.abspath(source)
  assert paths.to_exclude(cfg) == [
    os.path.join(s, '_config.yml'),
    os.path.join(s, '_config.yaml'),
    os.path.join(s, '_config.toml'),
    os.path.join(s, 'out'),
    os.path.join(s, 'tmp'),
    os.path.join(s, 'drafts'),
  ]


# ─────────────────────────────────────────────────────────────────────────────
# 5. Watch roots
# ─────────────────────────────────────────────────────────────────────────────
def test_watch_roots_order_and_sources(tmp_path: Path, source: Path):
  extra = tmp_path / 'extra'
  cfg = _config(source, watch_dirs=[str(extra)])
  site = _Site(config={'watch_dirs': ['_data', str(tmp_path / 'shared')]})
  roots = paths.watch_roots(cfg, site, '/themes/minimal')
  s = os.path.abspath(source)
  assert roots == [
    s,
    os.path.abspath(extra),
    os.path.join(s, '_data'),
    str(tmp_path / 'shared'),
    '/themes/minimal',
  ]


def test_watch_roots_drop_absent_theme(source: Path):
  roots = paths.watch_roots(_config(source), _Site(theme=Theme('x')), None)
  assert roots == [os.path.abspath(source)]
