# __main__.py
from .site_argparse import parse_argv, to_options
from .config import Diagnostics, WatchConfig
from .site import CommandSite, Theme
from .watcher import Watcher


def main() -> None:
  args = parse_argv()
  cfg = WatchConfig.from_options(to_options(args))
  diagnostics = Diagnostics(verbose=args.verbose, trace=args.trace)
  diagnostics.configure()

  theme = None
  if args.theme_root is not None:
    theme = Theme(args.theme_name or args.theme_root.name, str(args.theme_root.resolve()))
  site = CommandSite(cfg.source, args.command, theme=theme)
  Watcher(cfg, site, diagnostics).watch()


if __name__ == '__main__':
  main()
