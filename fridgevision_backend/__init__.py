import logging
import os
from typing import Any, Mapping

from flask import Flask, jsonify
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fridgevision_backend.api import init_app as init_api
from fridgevision_backend.config import (
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_GEMINI_TIMEOUT_SECONDS,
    DEFAULT_RECIPE_COUNT,
    MIN_RECIPE_RESULTS,
)
from fridgevision_backend.models import get_database_url
from fridgevision_backend.services.llm import GeminiSettings, init_gemini_client
from fridgevision_backend.services.profile_store import ProfileStore
from fridgevision_backend.services.storage import init_key_value_store

STORAGE_KINDS = ("database", "memory", "none")


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    """Application factory for the FridgeVision backend."""
    app = Flask(__name__)

    app.config["RECIPE_COUNT"] = _int_from_env(
        "FRIDGEVISION_RECIPE_COUNT", DEFAULT_RECIPE_COUNT
    )
    app.config["MIN_RECIPE_RESULTS"] = _int_from_env(
        "FRIDGEVISION_MIN_RECIPES", MIN_RECIPE_RESULTS
    )
    app.config["STORAGE"] = os.environ.get("FRIDGEVISION_STORAGE")
    if config:
        app.config.update(config)

    _configure_logging(app)
    _init_storage(app)

    @app.get("/healthz")
    def healthcheck():
        return jsonify(status="ok")

    @app.get("/api/healthz")
    def api_healthcheck():
        return jsonify(status="ok")

    fallback_api_key = os.environ.get(
        "FRIDGEVISION_GEMINI_API_KEY"
    ) or os.environ.get("GOOGLE_AI_API_KEY")
    if not fallback_api_key:
        app.logger.info(
            "FRIDGEVISION_GEMINI_API_KEY/GOOGLE_AI_API_KEY not set; "
            "requests need a stored API key"
        )

    try:
        timeout = float(
            os.environ.get(
                "FRIDGEVISION_GEMINI_TIMEOUT", DEFAULT_GEMINI_TIMEOUT_SECONDS
            )
        )
    except ValueError:
        app.logger.warning(
            "invalid FRIDGEVISION_GEMINI_TIMEOUT; using %s",
            DEFAULT_GEMINI_TIMEOUT_SECONDS,
        )
        timeout = DEFAULT_GEMINI_TIMEOUT_SECONDS

    app.extensions["gemini_client"] = init_gemini_client(
        GeminiSettings(
            base_url=os.environ.get(
                "FRIDGEVISION_GEMINI_BASE_URL", DEFAULT_GEMINI_BASE_URL
            ),
            timeout=timeout,
            fallback_api_key=fallback_api_key,
        )
    )

    init_api(app)

    return app


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            "invalid %s=%s; using %s", name, raw, default
        )
        return default


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _init_storage(app: Flask) -> None:
    """Pick the key-value store behind the profile buckets."""

    kind = app.config.get("STORAGE")
    database_url = None
    if kind in (None, "database"):
        try:
            database_url = get_database_url()
        except RuntimeError:
            if kind == "database":
                app.logger.warning(
                    "DATABASE_URL not set; profile storage disabled"
                )
                kind = "none"
            else:
                app.logger.warning(
                    "DATABASE_URL not set; profile data kept in memory"
                )
                kind = "memory"
        else:
            kind = "database"

    if kind not in STORAGE_KINDS:
        app.logger.warning(
            "unknown FRIDGEVISION_STORAGE=%s; profile storage disabled", kind
        )
        kind = "none"

    session_factory = None
    if kind == "database":
        engine = create_engine(database_url, pool_pre_ping=True)
        session_factory = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )
        app.extensions["db_engine"] = engine
        app.extensions["db_sessionmaker"] = session_factory

    app.extensions["profile_store"] = ProfileStore(
        init_key_value_store(kind, session_factory=session_factory)
    )
    app.logger.info("profile storage ready", extra={"storage": kind})


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8000)
