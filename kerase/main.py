"""Entry point for KErase.

Usage:
    python -m kerase.main                          # run the daemon
    python -m kerase.main --resolve "hello world"  # print what a word delete removes
"""
import sys
import signal
import logging
import argparse

from kerase.resolver import DeletionGranularity, resolve_deletion_span


def setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def run_resolve(text: str, granularity: DeletionGranularity) -> int:
    """Print the span a backward delete would remove from ``text``."""
    span = resolve_deletion_span(text, granularity)
    print(f"{granularity.value}: {span!r} ({len(span)} chars)")
    print(f"remaining: {text[:len(text) - len(span)]!r}")
    return 0


def run_daemon(debug: bool = False) -> int:
    """Run the daemon until interrupted (headless, for systemd user service)."""
    import time
    from kerase.config import Config
    from kerase.daemon import Daemon

    config = Config()
    setup_logging(debug or config.debug_logging)

    logger = logging.getLogger(__name__)
    logger.info("Starting KErase daemon (config: %s)", config.path)

    try:
        daemon = Daemon(config)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2
    daemon.start()

    exit_code = 1  # listener died on its own
    try:
        while daemon.running:
            time.sleep(0.2)
    except KeyboardInterrupt:
        exit_code = 0
    finally:
        daemon.stop()
    return exit_code


def _granularity(name: str) -> DeletionGranularity:
    try:
        return DeletionGranularity.from_name(name)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def main(argv=None):
    parser = argparse.ArgumentParser(description="KErase — word and sentence backspace for X11")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--daemon", action="store_true",
                       help="Run the daemon (default)")
    group.add_argument("--resolve", metavar="TEXT",
                       help="Show what a delete before the end of TEXT removes, then exit")
    parser.add_argument("--granularity", type=_granularity,
                        default=DeletionGranularity.WORD,
                        help="char, word or sentence (default: word)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.resolve is not None:
        return run_resolve(args.resolve, args.granularity)

    signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))
    return run_daemon(debug=args.debug)


if __name__ == "__main__":
    sys.exit(main())
