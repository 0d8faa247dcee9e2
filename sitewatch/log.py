# log.py
'''
Topic/message logging on top of the standard ``logging`` module.

Every diagnostic is a *(topic, message)* pair.  The topic travels on the
record as ``record.topic`` and ``TopicFormatter`` renders it right-justified
in a 20-column gutter:

            Regenerating: 2 file(s) changed at 2024-01-01 12:00:00
                          _posts/x.md
'''

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

TOPIC_WIDTH = 20


class TopicFormatter(logging.Formatter):
  def format(self, record: logging.LogRecord) -> str:
    topic = getattr(record, 'topic', '')
    line = f'{topic:>{TOPIC_WIDTH}} {record.getMessage()}'.rstrip()
    if record.exc_info:
      line += '\n' + self.formatException(record.exc_info)
    return line


class TopicLogger:
  '''Thin wrapper so call sites read ``log.info('Topic:', 'message')``.'''

  def __init__(self, logger: logging.Logger) -> None:
    self.logger = logger

  def _log(self, level: int, topic: str, message: str, **kw) -> None:
    # message is pre-rendered, never %-formatted
    self.logger.log(level, '%s', message, extra={'topic': topic}, **kw)

  def debug(self, topic: str, message: str = '', **kw) -> None:
    self._log(logging.DEBUG, topic, message, **kw)

  def info(self, topic: str, message: str = '', **kw) -> None:
    self._log(logging.INFO, topic, message, **kw)

  def warn(self, topic: str, message: str = '', **kw) -> None:
    self._log(logging.WARNING, topic, message, **kw)


def get_logger(name: str) -> TopicLogger:
  return TopicLogger(logging.getLogger(name))


def setup_logging(level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Handler:
  '''Attach one ``TopicFormatter`` handler to the ``sitewatch`` logger.'''
  root = logging.getLogger('sitewatch')
  for h in list(root.handlers):
    if getattr(h, '_sitewatch', False):
      root.removeHandler(h)
  handler = logging.StreamHandler(stream or sys.stderr)
  handler.setFormatter(TopicFormatter())
  handler._sitewatch = True  # type: ignore[attr-defined]
  root.addHandler(handler)
  root.setLevel(level)
  return handler


def flush_logging() -> None:
  for h in logging.getLogger('sitewatch').handlers:
    h.flush()
