import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import uvicorn

from .config import DEFAULT_HOST, DEFAULT_PORT, ConnectorConfig, load_config
from .errors import ConfigError
from .main import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="digistorm-connector",
        description="A lightweight HTTPS server to act as a connector between a local database and the Digistorm API.",
    )
    parser.add_argument("--key", help="Digistorm API key.")
    parser.add_argument("--host", help=f"Host name for this server e.g. 'digistorm.myschool.qld.edu.au' (default {DEFAULT_HOST}).")
    parser.add_argument("--port", type=int, help=f"Port number for this server. Must be open to incoming requests at the firewall (default {DEFAULT_PORT}).")
    parser.add_argument("--cert-file", help="TLS certificate (PEM).")
    parser.add_argument("--key-file", help="TLS private key (PEM).")
    parser.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO.")
    parser.add_argument("--env-file", help="Path to a .env file (default ./.env).")
    return parser


def ssl_options(config: ConnectorConfig) -> dict:
    cert, key = Path(config.cert_file), Path(config.key_file)
    if cert.is_file() and key.is_file():
        return {"ssl_certfile": str(cert), "ssl_keyfile": str(key)}
    logger.warning("[Connector] TLS certificate or key not found (%s, %s); serving plain HTTP", cert, key)
    return {}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(
            env_file=args.env_file,
            api_key=args.key,
            host=args.host,
            port=args.port,
            cert_file=args.cert_file,
            key_file=args.key_file,
            log_level=args.log_level,
        )
        logging.basicConfig(
            level=config.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        config.require_api_key()
    except (ConfigError, ValueError) as e:
        logging.basicConfig()
        logger.error("[Connector] %s", e)
        return 1

    logger.info("[Connector] Starting server on address: %s", config.address)
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        **ssl_options(config),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
