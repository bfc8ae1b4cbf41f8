"""A basic logging helper for the command line entry point."""
import logging
import sys

# Third-party loggers that are chatty at DEBUG
QUIET_LOGGERS = ("matplotlib", "PIL", "pyogrio", "fiona")


def setup_logging(verbose=False):
    """Configures basic logging on stdout; DEBUG when verbose, else INFO."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
