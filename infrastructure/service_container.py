"""
Service container for dependency injection and initialization.

Usage:
    container = ServiceContainer(config)
    await container.initialize()

    arena = container.arena_service
"""

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from domain.models.debate import Persona
from services.clock import AsyncioClock, Clock
from services.topic_catalog import TopicCatalog

if TYPE_CHECKING:
    from services.arena_session_service import ArenaSessionService

logger = logging.getLogger("arena_bot.infrastructure.container")


@dataclass
class ServiceConfig:
    """Configuration for service initialization."""

    # Topic feed
    topics_source: str = "data/topics.json"
    topics_fetch_timeout_seconds: float = 5.0
    initial_topic_index: str | int | None = None

    # Arena settings
    default_persona: str = "Rowdy Pub"
    round_length_seconds: int = 45
    countdown_period_seconds: float = 1.0
    commentary_period_multiplier: float = 2.5
    log_capacity: int = 7
    thumbnail_export_dir: str = "thumbnails"

    # Seed for the shared random source (None = unseeded)
    random_seed: int | None = None


class ServiceContainer:
    """
    Central container for the arena services.

    The topic catalog is loaded exactly once, during initialize().
    """

    def __init__(self, config: ServiceConfig | None = None, clock: Clock | None = None):
        self.config = config or ServiceConfig()
        self._clock = clock
        self._initialized = False
        self._catalog: TopicCatalog | None = None
        self._services: dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Load the topic feed and build the services.

        This method is idempotent - calling it multiple times has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")
        self._init_catalog()
        self._init_arena_service()
        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_catalog(self) -> None:
        self._catalog = TopicCatalog.load(
            self.config.topics_source,
            initial_index=self.config.initial_topic_index,
            timeout=self.config.topics_fetch_timeout_seconds,
        )

    def _init_arena_service(self) -> None:
        from services.arena_session_service import ArenaSessionService

        persona = Persona.parse(self.config.default_persona)
        if persona is None:
            logger.warning(f"Unknown default persona '{self.config.default_persona}', using Rowdy Pub")
            persona = Persona.ROWDY_PUB

        self._services["arena"] = ArenaSessionService(
            catalog=self._catalog,
            clock=self._clock or AsyncioClock(),
            rng=random.Random(self.config.random_seed),
            default_persona=persona,
            round_length_seconds=self.config.round_length_seconds,
            countdown_period=self.config.countdown_period_seconds,
            commentary_multiplier=self.config.commentary_period_multiplier,
            log_capacity=self.config.log_capacity,
            export_dir=self.config.thumbnail_export_dir,
        )

    @property
    def topic_catalog(self) -> TopicCatalog | None:
        return self._catalog

    @property
    def arena_service(self) -> "ArenaSessionService | None":
        return self._services.get("arena")

    def expose_to_bot(self, bot) -> None:
        """
        Expose services to a Discord bot object.

        Cogs look services up as bot.<service_name>.
        """
        bot.topic_catalog = self.topic_catalog
        bot.arena_service = self.arena_service
