"""
Attestation Registry — service entrypoint.

1. Configures structured logging
2. Builds the registry around the configured Authority
3. Initializes the event journal and subscribes it to registry events
4. Serves the HTTP API
"""

from __future__ import annotations

import logging
import sys

import structlog
import uvicorn

from attestation_registry.config import RegistrySettings, settings
from attestation_registry.ledger.service import EventJournal
from attestation_registry.registry.core import IdentityRegistry

logger = logging.getLogger(__name__)


def configure_logging(log_level: str = settings.log_level, log_format: str = settings.log_format) -> None:
    """Configure structured logging."""
    logging.basicConfig(level=logging.getLevelName(log_level), format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.dev.ConsoleRenderer()
                if log_format != "json"
                else structlog.processors.JSONRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_registry(
    config: RegistrySettings = settings,
) -> tuple[IdentityRegistry, EventJournal | None]:
    """Create the registry and, when enabled, its subscribed event journal."""
    registry = IdentityRegistry(
        authority=config.authority_address,
        authority_name=config.authority_name,
        sentinel=config.registration_number_bound,
    )

    journal = None
    if config.journal_enabled:
        journal = EventJournal(config.database_url)
        journal.initialize()
        registry.subscribe(journal.record_event)

    return registry, journal


def main() -> None:
    configure_logging()
    log = structlog.get_logger()

    log.info(
        "attestation_registry.server.starting",
        authority=settings.authority_address,
        journal_enabled=settings.journal_enabled,
    )

    from attestation_registry.api.app import app, state

    try:
        state.registry, state.journal = build_registry(settings)
    except Exception as e:
        log.exception("attestation_registry.server.init_failed", error=str(e))
        sys.exit(1)

    if state.journal is not None:
        is_valid, entries, msg = state.journal.verify_chain()
        if not is_valid:
            log.critical(
                "attestation_registry.server.journal_integrity_failure",
                message=msg,
                entries=entries,
            )
            sys.exit(1)
        log.info("attestation_registry.server.journal_ready", entries=entries)

    log.info(
        "attestation_registry.server.running",
        host=settings.api_host,
        port=settings.api_port,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
