"""Process entry point: wire adapters to the session manager and run."""

import asyncio
import logging
import sys

from sacana.adapters.accounts.linux import LinuxAccountManager
from sacana.adapters.hosts import fetch_host_list
from sacana.adapters.slack.client import SlackClient
from sacana.adapters.slack.payloads import decode_event
from sacana.config import AppConfig, __version__, load_config
from sacana.domain.authority import AuthorityGate
from sacana.domain.classifier import EventClassifier
from sacana.domain.dispatcher import CommandDispatcher
from sacana.domain.errors import ConfigError, SacanaError
from sacana.pipeline import EventPipeline
from sacana.session_manager import SessionManager

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_session_manager(config: AppConfig, hosts, chat=None, accounts=None) -> SessionManager:
    chat = chat or SlackClient(config.slack.api_token)
    accounts = accounts or LinuxAccountManager()
    gate = AuthorityGate(config.hostname, hosts)
    dispatcher = CommandDispatcher(
        chat, accounts, gate, config.accounts.public_key_uri_format
    )
    pipeline = EventPipeline(decode_event, EventClassifier(chat), dispatcher)
    return SessionManager(
        chat,
        pipeline,
        config.slack.channels,
        config.hostname,
        is_responder=gate.is_responder,
    )


async def serve(config: AppConfig) -> None:
    hosts = await fetch_host_list(
        config.accounts.host_list_uri, config.accounts.certificate_file
    )
    manager = build_session_manager(config, hosts)
    if manager.is_responder:
        logger.info("%s is the designated responder", config.hostname)
    await manager.run()


def main() -> None:
    try:
        config = load_config()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.critical("invalid configuration: %s", e)
        sys.exit(1)

    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logger.info("sacana %s starting on %s", __version__, config.hostname)
    try:
        asyncio.run(serve(config))
    except SacanaError as e:
        logger.critical("fatal: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("interrupted")


if __name__ == "__main__":
    main()
