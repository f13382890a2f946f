import argparse
import logging
import sys

import uvicorn

from .config import get_settings

LOG = logging.getLogger("musikmo.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def setup_logging(level: str, verbosity: int = 0):
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level.upper(), handlers=[h], force=True)

    if verbosity >= 1:
        logging.getLogger().setLevel(logging.DEBUG)


def main(argv=None):
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="musikmo",
        description="Musik M-O - song catalog service",
    )
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", "-p", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    args = parser.parse_args(argv)

    setup_logging(settings.log_level, args.verbose)
    LOG.info("Serving catalog %s on http://%s:%d", settings.catalog_path, args.host, args.port)
    LOG.info("Health check available at http://%s:%d%s/health", args.host, args.port, settings.api_prefix)

    uvicorn.run(
        "musikmo.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
