# cli/cli_serve_command.py

import logging

import uvicorn

from cli.cli_exit_codes import EXIT_OK, EXIT_STARTUP_ERROR
from cli.cli_logging import setup_logging
from core.exceptions import StartupError
from core.server_factory import create_server
from core.settings import ProxySettings

logger = logging.getLogger(__name__)


def handle_serve_command(args) -> int:
    """
    Handles the 'serve' CLI command by starting the delay proxy.
    """
    try:
        settings = ProxySettings.from_env(
            upstream=args.upstream,
            host=args.host,
            port=args.port,
            delay=args.delay,
            store_path=args.store_path,
        )
    except StartupError as e:
        setup_logging(args.verbose)
        logger.error(str(e))
        return EXIT_STARTUP_ERROR

    setup_logging(args.verbose, settings.log_level)
    app = create_server(settings)

    logger.info(f"Delay proxy listening on http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)

    return EXIT_OK
