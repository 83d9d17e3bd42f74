"""Attestation Registry — Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class RegistrySettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    # ── Authority ──────────────────────────────────────────────
    authority_address: str = "authority-001"
    authority_name: str = "Registry Authority"
    registration_number_bound: int = 10**16

    # ── Event Journal ──────────────────────────────────────────
    journal_enabled: bool = True
    database_url: str = "sqlite:///attestation_journal.db"

    # ── API ────────────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    caller_header: str = "X-Caller-Address"

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = RegistrySettings()
