"""Application entry point for the chatrelay daemon."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import websockets
from art import tprint

import settings
from adapters.onebot_mapper import decode_event
from client import build_backend, build_delivery, build_frame_source
from core.admission import AdmissionQueue
from core.dedup import DedupStore
from core.errors import ConfigError
from core.ingestion import IngestionLoop
from core.processor import EventProcessor
from core.sessions import SessionRegistry
from core.workers import WorkerPool

NAME = "RELAY"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, secrets: list[str]) -> list[str]:
    if not config.get("redact", True):
        return []
    # Longest first so a secret that contains another is masked whole.
    return sorted({value for value in secrets if value}, key=len, reverse=True)


def _configure_logging(config: Optional[dict] = None, secrets: Optional[list[str]] = None) -> None:
    config = config or {}
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config, secrets or []), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    path = config.get("file")
    if path:
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(config.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(config.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=level, handlers=handlers, force=True)


def _bootstrap_files(config_path: str, prompt_path: str) -> None:
    logger = logging.getLogger(__name__)
    if settings.ensure_config_file(config_path):
        logger.info("Created default config at %s", config_path)
    if settings.ensure_prompt_file(prompt_path):
        logger.info("Created default prompt at %s", prompt_path)


async def _serve(config: settings.Settings) -> None:
    logger = logging.getLogger(__name__)

    source = build_frame_source(config)
    await source.connect()

    backend = build_backend(config)
    queue = AdmissionQueue(config.workers.queue_size)
    processor = EventProcessor(
        backend=backend,
        delivery=build_delivery(config),
        dedup=DedupStore(config.dedup),
        sessions=SessionRegistry(),
        config=config.pipeline,
    )
    pool = WorkerPool(queue, processor, config.workers.count)
    ingestion = IngestionLoop(source, decode_event, queue, config.ingestion)

    pool.start()
    logger.info(
        "Listening for private messages (queue capacity %s, %s workers)...",
        queue.capacity,
        config.workers.count,
    )
    try:
        await ingestion.run()
    finally:
        ingestion.stop()
        await pool.stop(drain=True)
        await source.close()
        logger.info("Processed outcomes: %s", dict(pool.outcomes))


def _run(config_path: str, prompt_path: str) -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting chatrelay")
    try:
        _bootstrap_files(config_path, prompt_path)
        config = settings.load_settings(config_path, prompt_path)
    except ConfigError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    _configure_logging(config.logging, config.secrets)

    try:
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except (OSError, RuntimeError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
        logger.error("Fatal error: %s", exc)
        raise SystemExit(1) from exc


def _init(config_path: str, prompt_path: str) -> None:
    _configure_logging()
    try:
        _bootstrap_files(config_path, prompt_path)
    except ConfigError as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1) from exc


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="chatrelay")
    parser.add_argument("--config", default=settings.CONFIG_PATH, help="Path to config.ini")
    parser.add_argument("--prompt", default=settings.PROMPT_PATH, help="Path to prompt.txt")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the relay")
    subparsers.add_parser("init", help="Write default config.ini and prompt.txt, then exit")

    args = parser.parse_args(argv)
    if args.command == "init":
        _init(args.config, args.prompt)
        return
    _run(args.config, args.prompt)


if __name__ == "__main__":
    main()
