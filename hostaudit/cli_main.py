"""hostaudit - Main entry point.

Loads the configuration, sets up logging, runs the startup checks and hands
over to the AuditorCLI facade.
"""

import logging
import os
import sys

from rich.logging import RichHandler

from hostaudit.branding import console, ha_print
from hostaudit.cli import EXIT_CANCELLED, EXIT_FAILURE, AuditorCLI, build_parser
from hostaudit.config import load_config
from hostaudit.environment import preflight
from hostaudit.exceptions import ConfigError, EnvironmentFatalError

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False, log_file: str | None = None) -> logging.Logger:
    """Configure the ``hostaudit`` logger.

    Console output goes through rich and only shows warnings unless verbose.
    The optional log file always records debug detail and is readable by the
    owner only.
    """
    logger = logging.getLogger("hostaudit")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            os.chmod(log_file, 0o600)
        except OSError as e:
            logger.warning("Cannot open log file %s: %s", log_file, e)
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the hostaudit CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        ha_print(f"Configuration error: {e}", "error")
        return EXIT_FAILURE
    if config.log_file:
        setup_logging(args.verbose, config.log_file)

    cli = AuditorCLI(config, verbose=args.verbose)
    try:
        preflight(config.connectivity_host)
        return cli.dispatch(args)
    except EnvironmentFatalError as e:
        ha_print(str(e), "error")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        console.print("\nInterrupted")
        return EXIT_CANCELLED


if __name__ == "__main__":
    sys.exit(main())
