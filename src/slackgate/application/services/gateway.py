"""Wiring of the gateway's services."""

from collections.abc import Callable
from dataclasses import dataclass

from structlog.stdlib import BoundLogger

from slackgate.application.handlers.event_handlers import (
    EventHandlerRegistry,
    create_default_registry,
)
from slackgate.application.services.channel_crawler import ChannelCrawler
from slackgate.application.services.identity_cache import IdentityCache
from slackgate.application.services.message_normalizer import MessageNormalizer
from slackgate.application.services.scopes import ScopeProvider
from slackgate.application.services.thread_flattener import ThreadFlattener
from slackgate.application.services.workspace_directory import WorkspaceDirectory
from slackgate.config.models import AppConfig
from slackgate.domain.formatting import create_formatter
from slackgate.infrastructure.slack import SlackClientFactory


@dataclass
class GatewayServices:
    """Everything the HTTP layer needs, sharing one identity cache."""

    identity_cache: IdentityCache
    scopes: ScopeProvider
    crawler: ChannelCrawler
    directory: WorkspaceDirectory
    event_handlers: EventHandlerRegistry
    history_limit: int = 100


def build_services(
    config: AppConfig, get_logger: Callable[[str], BoundLogger]
) -> GatewayServices:
    """Create the services for a configuration.

    Args:
        config: Application configuration.
        get_logger: Factory returning a named logger per component.

    Returns:
        The wired services.
    """
    identity_cache = IdentityCache(logger=get_logger("identity_cache"))
    normalizer = MessageNormalizer(
        identity_cache,
        create_formatter(
            config.formatting.timestamp_style, config.formatting.timezone
        ),
    )
    flattener = ThreadFlattener(normalizer, logger=get_logger("thread_flattener"))
    return GatewayServices(
        identity_cache=identity_cache,
        scopes=ScopeProvider(
            SlackClientFactory(config.slack), logger=get_logger("team_resolver")
        ),
        crawler=ChannelCrawler(normalizer, flattener, logger=get_logger("crawler")),
        directory=WorkspaceDirectory(identity_cache, logger=get_logger("directory")),
        event_handlers=create_default_registry(
            identity_cache, logger=get_logger("slack_events")
        ),
        history_limit=config.slack.history_limit,
    )
