"""
Application startup and shutdown.

Builds every board component from the configuration, registers it with the
container, starts the lifecycle components in order and stops them in
reverse order at shutdown.
"""

from typing import List, Optional, Type

from loguru import logger

from .container import IContainer
from .relay import PushRelay
from ..core.interfaces.lifecycle import IComponent
from ..core.interfaces.thumbnail import IThumbnailGenerator
from ..core.services.broadcast_hub import BroadcastHub
from ..core.services.message_queue import MessageQueue
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.logging.setup import LoggingManager
from ..infrastructure.services.streaming.ranges import RangeResponder
from ..infrastructure.services.thumbnail import PillowThumbnailGenerator
from ..infrastructure.services.upload.store import UploadSessionStore


class ApplicationStartup:
    """Registers, starts and stops the application components."""

    STARTUP_ORDER: List[Type[IComponent]] = [
        LoggingManager,
        UploadSessionStore,
        BroadcastHub,
    ]

    def __init__(
        self,
        container: IContainer,
        config: ApplicationConfig,
        thumbnailer: Optional[IThumbnailGenerator] = None
    ) -> None:
        self._container = container
        self._config = config
        self._thumbnailer = thumbnailer
        self._started_components: List[IComponent] = []

    @property
    def started_components(self) -> List[IComponent]:
        return list(self._started_components)

    def configure_services(self) -> None:
        """Register every component with the container."""
        config = self._config
        container = self._container

        container.register_instance(ApplicationConfig, config)
        container.register_factory(
            LoggingManager, lambda c: LoggingManager(config.logging))
        container.register_factory(
            UploadSessionStore,
            lambda c: UploadSessionStore(
                storage_dir=config.file.storage_directory,
                retention_window=config.file.expire,
                max_file_size=config.file.limit,
                stale_upload_timeout=config.file.stale_upload_timeout,
                sweep_interval=config.file.sweep_interval,
            ))
        container.register_factory(
            MessageQueue, lambda c: MessageQueue(capacity=config.board.history))
        container.register_factory(
            BroadcastHub, lambda c: BroadcastHub(outbox_size=config.board.outbox_size))
        container.register_factory(RangeResponder, lambda c: RangeResponder())
        container.register_instance(
            IThumbnailGenerator,  # type: ignore[type-abstract]
            self._thumbnailer or PillowThumbnailGenerator())
        container.register_factory(
            PushRelay,
            lambda c: PushRelay(
                store=c.resolve(UploadSessionStore),
                queue=c.resolve(MessageQueue),
                hub=c.resolve(BroadcastHub),
                responder=c.resolve(RangeResponder),
                thumbnailer=c.resolve(IThumbnailGenerator),  # type: ignore[type-abstract]
                text_limit=config.text.limit,
                thumbnail_max_size=config.file.thumbnail_max_size,
            ))

        logger.debug("Service configuration completed")

    async def start_application(self) -> None:
        """
        Start the lifecycle components in order.

        If one fails, those already started are stopped before re-raising.
        """
        for component_type in self.STARTUP_ORDER:
            component = self._container.resolve(component_type)
            try:
                await component.start()
            except Exception as e:
                logger.error(f"Failed to start component {component.name}: {e}")
                await self.stop_application()
                raise

            self._started_components.append(component)
            logger.debug(f"Started component: {component.name}")

        # Builds the relay so wiring errors surface at startup.
        self._container.resolve(PushRelay)
        logger.info("Application startup completed successfully")

    async def stop_application(self) -> None:
        """Stop all started components in reverse order."""
        for component in reversed(self._started_components):
            try:
                await component.stop()
                logger.debug(f"Stopped component: {component.name}")
            except Exception as e:
                logger.error(f"Error stopping component {component.name}: {e}")

        self._started_components.clear()
