"""HTTP server exposing the Slack gateway."""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
import ulid
from aiohttp import web
from pydantic import ValidationError

from slackgate.application.services.gateway import GatewayServices
from slackgate.application.services.scopes import SlackScope
from slackgate.config.models import ServerConfig
from slackgate.domain.entities.event import SlackEventEnvelope
from slackgate.domain.entities.message import CrawlFilters, render_lines
from slackgate.infrastructure.logging import bind_request_context
from slackgate.infrastructure.slack import (
    UPSTREAM_ERRORS,
    MissingTokenError,
    slack_error_code,
)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def error_response(message: str, status: int, **extra: Any) -> web.Response:
    """JSON error body shared by every route."""
    return web.json_response(
        {"success": False, "error": message, **extra}, status=status
    )


@web.middleware
async def request_context_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Tag every log line of a request with a fresh request_id."""
    bind_request_context(request_id=str(ulid.new()), path=request.path)
    return await handler(request)


class HTTPServer:
    """HTTP server proxying the Slack Web API.

    This server provides endpoints for:
    - GET /healthz: Kubernetes liveness probe
    - GET /channels: Channels visible to the token
    - GET /users: Workspace users, filtered by ?email= and ?name=
    - GET /users/{channel_id}: Profiles of a channel's members
    - GET /crawl: History of several channels (?channels=C1,C2)
    - GET /crawl/{channel_id}: History of one channel
    - POST /send/{channel_id}: Post a message
    - POST /slack/events: Slack Events API callbacks

    Every upstream route accepts ``?token=``; without it the server-side token
    is used.

    Args:
        config: Server configuration containing host and port.
        services: Gateway services sharing one identity cache.
        logger: Structured logger for logging.
    """

    def __init__(
        self,
        config: ServerConfig,
        services: GatewayServices,
        logger: structlog.BoundLogger,
    ) -> None:
        self.config = config
        self._services = services
        self._logger = logger
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the server is running."""
        return self._site is not None

    @property
    def actual_port(self) -> int:
        """Return the actual port the server is listening on.

        This is useful when port 0 is configured to get a random port.

        Raises:
            RuntimeError: If the server is not running.
        """
        if self._site is None:
            raise RuntimeError("Server is not running")
        # aiohttp keeps the listening server private
        server = getattr(self._site, "_server", None)
        if server is None:
            raise RuntimeError("Server is not running")
        sockets = getattr(server, "sockets", None)
        if sockets:
            return sockets[0].getsockname()[1]
        raise RuntimeError("No sockets available")

    def create_app(self) -> web.Application:
        """Create and return the aiohttp Application.

        This method is exposed for testing purposes.

        Returns:
            Configured aiohttp Application.
        """
        app = web.Application(
            middlewares=[request_context_middleware, self._error_middleware]
        )
        app.router.add_get("/healthz", self._handle_health_check)
        app.router.add_get("/channels", self._handle_channels)
        app.router.add_get("/users", self._handle_search_users)
        app.router.add_get("/users/{channel_id}", self._handle_channel_users)
        app.router.add_get("/crawl", self._handle_crawl)
        app.router.add_get("/crawl/{channel_id}", self._handle_crawl_channel)
        app.router.add_post("/send/{channel_id}", self._handle_send)
        app.router.add_post("/slack/events", self._handle_slack_event)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._app = self.create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()
        self._logger.info(
            "HTTP server started",
            host=self.config.host,
            port=self.actual_port,
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._app = None
            self._logger.info("HTTP server stopped")

    @web.middleware
    async def _error_middleware(
        self, request: web.Request, handler: Handler
    ) -> web.StreamResponse:
        """Turn unexpected exceptions into the JSON error body."""
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as e:
            self._logger.exception("Unhandled error", path=request.path)
            return error_response(str(e), status=500)

    def _scope(self, request: web.Request) -> SlackScope:
        """Resolve the Slack scope for the request's ?token=.

        Raises:
            MissingTokenError: If no token is available at all.
        """
        token = request.query.get("token") or None
        return self._services.scopes.scope_for(token)

    def _upstream_error(self, message: str, error: BaseException) -> web.Response:
        code = slack_error_code(error)
        self._logger.error(message, error=str(error), slack_error=code)
        return error_response(str(error), status=500, slack_error_code=code)

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        """Handle GET /healthz requests."""
        return web.json_response({"status": "ok"})

    async def _handle_channels(self, request: web.Request) -> web.Response:
        """Handle GET /channels requests.

        Args:
            request: The incoming request.

        Returns:
            JSON response with the channel list.
        """
        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        try:
            channels = await self._services.directory.list_channels(scope.client)
        except UPSTREAM_ERRORS as e:
            return self._upstream_error("Error fetching channels", e)

        return web.json_response({"success": True, "channels": channels})

    async def _handle_search_users(self, request: web.Request) -> web.Response:
        """Handle GET /users requests.

        Returns:
            JSON array of profiles matching ?email= and ?name=.
        """
        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        try:
            users = await self._services.directory.search_users(
                scope.client,
                email=request.query.get("email") or None,
                name=request.query.get("name") or None,
            )
        except UPSTREAM_ERRORS as e:
            return self._upstream_error("Error listing users", e)

        return web.json_response([user.model_dump() for user in users])

    async def _handle_channel_users(self, request: web.Request) -> web.Response:
        """Handle GET /users/{channel_id} requests.

        Returns:
            JSON response with the member profiles, or 500 with Slack's error
            code when the member list cannot be fetched.
        """
        channel_id = request.match_info["channel_id"]
        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        try:
            users = await self._services.directory.channel_members(
                scope.client, channel_id
            )
        except UPSTREAM_ERRORS as e:
            return self._upstream_error("Error fetching channel members", e)

        return web.json_response(
            {
                "success": True,
                "channel": channel_id,
                "users": [user.model_dump() for user in users],
                "total": len(users),
            }
        )

    async def _handle_crawl(self, request: web.Request) -> web.Response:
        """Handle GET /crawl requests.

        Channel failures are reported per channel; this route only fails for
        missing parameters.

        Returns:
            JSON mapping of channel ID to its crawl result.
        """
        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        # Repeated ids are crawled once
        channel_ids = list(
            dict.fromkeys(
                channel.strip()
                for channel in request.query.get("channels", "").split(",")
                if channel.strip()
            )
        )
        if not channel_ids:
            return error_response("Channels are required", status=400)

        filters = CrawlFilters.from_query(
            request.query, default_limit=self._services.history_limit
        )
        as_text = request.query.get("format") == "text"
        results = await self._services.crawler.crawl(scope, channel_ids, filters)

        return web.json_response(
            {
                channel_id: result.to_payload(as_text=as_text)
                for channel_id, result in results.items()
            }
        )

    async def _handle_crawl_channel(self, request: web.Request) -> web.Response:
        """Handle GET /crawl/{channel_id} requests.

        Returns:
            JSON response with the enriched messages and pagination info.
        """
        channel_id = request.match_info["channel_id"]
        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        filters = CrawlFilters.from_query(
            request.query, default_limit=self._services.history_limit
        )
        try:
            result = await self._services.crawler.crawl_channel(
                scope, channel_id, filters
            )
        except UPSTREAM_ERRORS as e:
            return self._upstream_error("Error crawling messages", e)

        messages: list[Any]
        if request.query.get("format") == "text":
            messages = render_lines(result.messages)
        else:
            messages = [message.model_dump() for message in result.messages]

        return web.json_response(
            {
                "success": True,
                "channel": channel_id,
                "messages": messages,
                "total": result.total,
                "has_more": result.has_more,
                "next_cursor": result.next_cursor,
            }
        )

    async def _handle_send(self, request: web.Request) -> web.Response:
        """Handle POST /send/{channel_id} requests.

        Returns:
            JSON response with the posted message's ts.
        """
        channel_id = request.match_info["channel_id"]
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return error_response("Invalid JSON", status=400)

        text = body.get("text") if isinstance(body, dict) else None
        if not text:
            return error_response("Text is required in the request body", status=400)

        try:
            scope = self._scope(request)
        except MissingTokenError as e:
            return error_response(str(e), status=400)

        try:
            ts = await self._services.directory.send_message(
                scope.client, channel_id, text
            )
        except UPSTREAM_ERRORS as e:
            return self._upstream_error("Error sending message", e)

        return web.json_response(
            {
                "success": True,
                "message": "Message sent successfully",
                "channel": channel_id,
                "timestamp": ts,
            }
        )

    async def _handle_slack_event(self, request: web.Request) -> web.Response:
        """Handle POST /slack/events requests.

        Answers the URL verification handshake and dispatches event callbacks
        to the registered handler. Unknown or malformed payloads are
        acknowledged; only a body that is not a JSON object is rejected.

        Returns:
            The challenge, ``{"success": true}``, or 500 on handler failure.
        """
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return error_response("Invalid JSON", status=400)
        if not isinstance(body, dict):
            return error_response("Invalid JSON", status=400)

        try:
            envelope = SlackEventEnvelope.model_validate(body)
        except ValidationError:
            self._logger.warning("Ignoring malformed event payload")
            return web.json_response({"success": True})

        if envelope.is_url_verification:
            return web.json_response({"challenge": envelope.challenge})

        if envelope.is_event_callback:
            handler = self._services.event_handlers.get_handler(envelope.event_type)
            if handler is not None:
                default_scope = self._services.scopes.default_scope
                client = default_scope.client if default_scope else None
                try:
                    await handler.handle(envelope.event or {}, client)
                except Exception as e:
                    self._logger.exception(
                        "Error processing event", event_type=envelope.event_type
                    )
                    return error_response(str(e), status=500)

        return web.json_response({"success": True})
