"""MCP server exposing every Linear action through one tool."""

import logging
import sys
from typing import Any

import httpx
from anyio import to_thread
from mcp.server.fastmcp import FastMCP

from streamlinear.client import LinearClient
from streamlinear.dispatcher import Dispatcher
from streamlinear.errors import StreamlinearError
from streamlinear.settings import configure_logging, get_settings, resolve_token

TOOL_NAME = "linear"

# MCP arguments default to this when the caller omits assignee; JSON null unassigns.
# The literal "null" is accepted as an unassign alias for hosts that cannot send null.
OMITTED = ""
UNASSIGN = "null"

log = logging.getLogger(__name__)


def build_payload(action: str, assignee: str | None = OMITTED, **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"action": action}
    payload.update({k: v for k, v in fields.items() if v is not None})
    if assignee != OMITTED:
        payload["assignee"] = None if assignee in (None, UNASSIGN) else assignee
    return payload


def run_action(dispatcher: Dispatcher, payload: dict[str, Any]) -> str:
    """Dispatch and turn any failure into ``Error: ...`` text for the host."""
    try:
        return dispatcher.dispatch_payload(payload)
    except (StreamlinearError, httpx.HTTPError) as exc:
        log.warning("action %s failed: %s", payload.get("action"), exc)
        return f"Error: {exc}"


def create_server(dispatcher: Dispatcher) -> FastMCP:
    """Register the single ``linear`` tool. Fetches the team catalog for its description."""
    server = FastMCP(TOOL_NAME)

    async def linear(
        action: str,
        query: str | dict[str, Any] | None = None,
        id: str | None = None,
        state: str | None = None,
        priority: int | None = None,
        assignee: str | None = OMITTED,
        labels: list[str] | None = None,
        body: str | None = None,
        title: str | None = None,
        team: str | None = None,
        graphql: str | None = None,
        variables: dict[str, Any] | None = None,
    ) -> str:
        payload = build_payload(
            action,
            query=query,
            id=id,
            state=state,
            priority=priority,
            assignee=assignee,
            labels=labels,
            body=body,
            title=title,
            team=team,
            graphql=graphql,
            variables=variables,
        )
        # blocking HTTP runs off the event loop so concurrent calls overlap
        return await to_thread.run_sync(run_action, dispatcher, payload)

    server.add_tool(linear, name=TOOL_NAME, description=dispatcher.tool_description())
    return server


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        api_token = resolve_token(settings)
    except StreamlinearError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    if not api_token:
        print(
            f"Linear API token required (set {settings.token_env} or any LINEAR*_API_TOKEN environment variable)",
            file=sys.stderr,
        )
        sys.exit(1)

    dispatcher = Dispatcher(LinearClient(api_token, endpoint=settings.endpoint, timeout=settings.timeout))
    server = create_server(dispatcher)
    log.info("serving %s over stdio", TOOL_NAME)
    server.run()


if __name__ == "__main__":
    main()
