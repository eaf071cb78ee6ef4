"""
Habit Garden - Application Bootstrap
====================================

Wires the engine together for a presentation layer:

- Config validation
- Database initialization (and schema creation on first run)
- Event bus
- Preference store (memory or Redis)
- Garden services: store, transactor, focal selector, activity, workflow
- Graceful shutdown

Running ``python -m src.main`` initializes the database, creates missing
tables, reports health and exits.
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass
from typing import Optional

from src.core.config.config import Config
from src.core.database.service import DatabaseService
from src.core.event import EventBus, event_bus
from src.core.logging.logger import get_logger, shutdown_logging
from src.core.preferences import (
    PreferenceStore,
    RedisPreferenceStore,
    create_preference_store,
)
from src.modules.garden import (
    ActivityService,
    CompletionWorkflow,
    FocalPlantSelector,
    GardenStore,
    SessionProvider,
    StaticSessionProvider,
    XPTransactor,
)

logger = get_logger(__name__)


@dataclass
class GardenApp:
    """Wired services for one process."""

    events: EventBus
    preferences: PreferenceStore
    sessions: SessionProvider
    store: GardenStore
    transactor: XPTransactor
    focal: FocalPlantSelector
    activity: ActivityService
    workflow: CompletionWorkflow


# ============================================================================
# Application Bootstrap
# ============================================================================


async def create_app(
    sessions: Optional[SessionProvider] = None,
    events: Optional[EventBus] = None,
    preferences: Optional[PreferenceStore] = None,
    create_schema: bool = False,
) -> GardenApp:
    """Initialize infrastructure and build the garden services."""
    logger.info("========== HABIT GARDEN INITIALIZATION START ==========")

    try:
        Config.validate()
        logger.info("Configuration validated")
    except Exception as exc:
        logger.critical(f"Configuration validation failed: {exc}")
        raise

    try:
        await DatabaseService.initialize()
        if create_schema:
            await DatabaseService.create_schema()
        logger.info("Database service initialized")
    except Exception as exc:
        logger.critical(f"Database initialization failed: {exc}", exc_info=True)
        raise

    bus = events or event_bus
    prefs = preferences or create_preference_store(Config)
    session_provider = sessions or StaticSessionProvider()

    store = GardenStore(DatabaseService, get_logger("src.modules.garden.store"))
    transactor = XPTransactor(
        store, Config, bus, get_logger("src.modules.garden.xp_transactor")
    )
    focal = FocalPlantSelector(
        prefs, Config, bus, get_logger("src.modules.garden.focal_selector")
    )
    activity = ActivityService(
        store,
        Config,
        bus,
        get_logger("src.modules.garden.activity_service"),
        focal_selector=focal,
    )
    activity.subscribe_refresh()
    workflow = CompletionWorkflow(
        transactor,
        session_provider,
        Config,
        bus,
        get_logger("src.modules.garden.completion_workflow"),
    )

    logger.info(
        "========== HABIT GARDEN INITIALIZED ==========",
        extra={"config": Config.get_config_summary()},
    )
    return GardenApp(
        events=bus,
        preferences=prefs,
        sessions=session_provider,
        store=store,
        transactor=transactor,
        focal=focal,
        activity=activity,
        workflow=workflow,
    )


# ============================================================================
# Application Shutdown
# ============================================================================


async def shutdown_app(app: Optional[GardenApp]) -> None:
    """Release infrastructure held by the app."""
    logger.info("========== HABIT GARDEN SHUTDOWN START ==========")

    if app is not None:
        app.activity.unsubscribe_refresh()
        if isinstance(app.preferences, RedisPreferenceStore):
            try:
                await app.preferences.close()
                logger.info("Preference store closed")
            except Exception as exc:
                logger.error(f"Preference store close error: {exc}", exc_info=True)

    try:
        await DatabaseService.shutdown()
        logger.info("Database service shut down")
    except Exception as exc:
        logger.error(f"Database service shutdown error: {exc}", exc_info=True)

    logger.info("========== SHUTDOWN COMPLETE ==========")


# ============================================================================
# Entrypoint
# ============================================================================


async def main() -> int:
    app: Optional[GardenApp] = None
    try:
        app = await create_app(create_schema=True)
        healthy = await DatabaseService.health_check()
        logger.info("Database health", extra={"healthy": healthy})
        return 0 if healthy else 1
    except Exception as exc:
        logger.critical(f"Fatal startup error: {exc}", exc_info=True)
        return 1
    finally:
        await shutdown_app(app)


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    shutdown_logging()
    sys.exit(exit_code)
