"""Application context - central container for shared dependencies."""

import logging
from dataclasses import dataclass

from proofplay.client.handler import GameController
from proofplay.client.presenter import NotificationLog, Presenter
from proofplay.client.transport import Transport, WebSocketTransport
from proofplay.config import Settings
from proofplay.game.countdown import minutes_to_ms
from proofplay.game.state import GameState

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Container for client-wide dependencies.

    Initialize once at startup via create_context() and pass it around;
    the registry of games lives here and nowhere else.
    """

    settings: Settings
    game_state: GameState
    transport: Transport
    presenter: Presenter
    notifications: NotificationLog
    controller: GameController

    async def close(self) -> None:
        """Stop timers and release the connection."""
        self.controller.leave()
        await self.controller.drain()
        await self.transport.close()
        logger.info("Application context closed")


def create_context(
    settings: Settings | None = None,
    transport: Transport | None = None,
    presenter: Presenter | None = None,
) -> AppContext:
    """Create and return a fully initialized application context."""
    logger.info("Creating application context")

    if settings is None:
        from proofplay.config import get_settings

        settings = get_settings()

    if transport is None:
        transport = WebSocketTransport(settings.server_uri, timeout=settings.request_timeout)
        logger.debug(f"WebSocket transport configured for {settings.server_uri}")

    presenter = presenter or Presenter()
    notifications = NotificationLog()
    game_state = GameState(
        countdown_ms=minutes_to_ms(settings.countdown_minutes),
        tick_ms=settings.tick_ms,
    )
    controller = GameController(game_state, transport, presenter, notifications)

    logger.info("Application context created successfully")

    return AppContext(
        settings=settings,
        game_state=game_state,
        transport=transport,
        presenter=presenter,
        notifications=notifications,
        controller=controller,
    )
