import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional


def parse_argv(argv: Optional[List[str]] = None) -> argparse.Namespace:
  '''
  Parse command-line arguments for *sitewatch*.

  Parameters
  ----------
  argv
    A custom argument list (mainly for testing).  When None the
    function uses ``sys.argv[1:]`` automatically.

  Returns
  -------
  argparse.Namespace
    • source        : Site source directory
    • destination   : Build output directory (never watched)
    • watch_dirs    : Extra directories to watch
    • exclude       : Paths that never trigger a rebuild
    • force_polling : Bool flag - poll instead of OS notifications
    • theme_root    : Theme directory, watched when local
    • theme_name    : Theme name, used in diagnostics
    • verbose       : Bool flag - debug output
    • trace         : Bool flag - tracebacks for failed rebuilds
    • command       : Build command run on every change
  '''
  parser = argparse.ArgumentParser(
      prog='sitewatch',
      description='Watch a site source tree and rebuild it on every change.',
  )

  parser.add_argument(
      '--source',
      '-s',
      type=Path,
      default=Path('.'),
      help='Site source directory (default: current directory).',
  )
  parser.add_argument(
      '--destination',
      '-d',
      type=Path,
      default=None,
      help='Build output directory (default: SOURCE/_site).',
  )

  # extra roots / excludes, repeatable
  parser.add_argument(
      '--watch-dir',
      '-w',
      dest='watch_dirs',
      action='append',
      default=[],
      metavar='DIR',
      help='Additional directory to watch; may be repeated.',
  )
  parser.add_argument(
      '--exclude',
      '-x',
      action='append',
      default=[],
      metavar='PATH',
      help='Path (relative to SOURCE) that never triggers a rebuild; may be repeated.',
  )

  parser.add_argument(
      '--force-polling',
      action='store_true',
      help='Poll the file system instead of using OS change notifications.',
  )

  # theme
  parser.add_argument('--theme-root', type=Path, default=None, metavar='DIR',
                      help='Theme directory; watched unless it is vendored.')
  parser.add_argument('--theme-name', default=None, metavar='NAME',
                      help='Theme name (default: name of --theme-root).')

  # diagnostics
  parser.add_argument('--verbose', '-V', action='store_true', help='Print debug output.')
  parser.add_argument('--trace', '-t', action='store_true',
                      help='Show the full traceback when a rebuild fails.')

  parser.add_argument(
      'command',
      nargs=argparse.REMAINDER,
      help='Build command to run on every change (put it after "--").',
  )

  try:
    import argcomplete
    argcomplete.autocomplete(parser)
  except ImportError:
    pass
  args = parser.parse_args(argv)
  if args.command and args.command[0] == '--':
    args.command = args.command[1:]
  if not args.command:
    parser.error('a build command is required')
  return args


def to_options(args: argparse.Namespace) -> Dict[str, Any]:
  '''The option mapping ``WatchConfig.from_options`` expects.'''
  return {
    'source': args.source,
    'destination': args.destination,
    'watch_dirs': args.watch_dirs,
    'exclude': args.exclude,
    'force_polling': args.force_polling,
    'verbose': args.verbose,
    'serving': False,
  }
