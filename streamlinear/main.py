"""streamlinear CLI: every command builds one action request and prints the result."""

import json
from typing import Annotated

import httpx
import typer
from rich import print as rprint
from rich.table import Table

from streamlinear.actions import parse_request
from streamlinear.client import LinearClient
from streamlinear.dispatcher import Dispatcher
from streamlinear.errors import ConfigurationError, StreamlinearError
from streamlinear.formatting import HELP_TEXT
from streamlinear.settings import configure_logging, get_settings, resolve_token

app = typer.Typer(help="streamlinear: Linear issues from the command line", no_args_is_help=True)

TokenOpt = Annotated[
    str | None,
    typer.Option("--token", help="Linear API token (overrides every other source)", show_default=False),
]
TokenCmdOpt = Annotated[
    str | None,
    typer.Option("--token-cmd", help="Shell command that prints the Linear API token"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging on stderr")]
PriorityOpt = Annotated[
    int | None,
    typer.Option("--priority", "-p", min=0, max=4, help="0=None, 1=Urgent, 2=High, 3=Medium, 4=Low"),
]
LabelOpt = Annotated[
    list[str] | None,
    typer.Option("--label", "-l", help="Label name (repeatable)"),
]


# ---------------------------------------------------------------------------
# Dispatcher factory
# ---------------------------------------------------------------------------


def get_dispatcher(token: str | None = None, token_cmd: str | None = None, verbose: bool = False) -> Dispatcher:
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    api_token = resolve_token(settings, token=token, token_cmd=token_cmd)
    if not api_token:
        raise ConfigurationError(
            f"{settings.token_env} environment variable is required (or pass --token / --token-cmd)"
        )
    return Dispatcher(LinearClient(api_token, endpoint=settings.endpoint, timeout=settings.timeout))


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _run(payload: dict, token: str | None, token_cmd: str | None, verbose: bool) -> None:
    try:
        request = parse_request(payload)
        result = get_dispatcher(token, token_cmd, verbose).dispatch(request)
    except (StreamlinearError, httpx.HTTPError) as exc:
        raise _fail(str(exc)) from exc
    typer.echo(result)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("search")
def search(
    query: Annotated[list[str] | None, typer.Argument(help="Full-text search terms")] = None,
    state: Annotated[str | None, typer.Option("--state", help='Exact state name, e.g. "In Progress"')] = None,
    assignee: Annotated[str | None, typer.Option("--assignee", help="Email or 'me'")] = None,
    priority: PriorityOpt = None,
    team: Annotated[str | None, typer.Option("--team", "-t", help="Team key or name")] = None,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Search issues (default: your active issues)."""
    if query:
        payload = {"action": "search", "query": " ".join(query)}
    else:
        fields = {"state": state, "assignee": assignee, "priority": priority, "team": team}
        fields = {k: v for k, v in fields.items() if v is not None}
        payload = {"action": "search", "query": fields or None}
    _run(payload, token, token_cmd, verbose)


@app.command("get")
def get(
    issue_id: Annotated[str, typer.Argument(help="ENG-123, a linear.app URL, or a UUID")],
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Show issue details and recent comments."""
    _run({"action": "get", "id": issue_id}, token, token_cmd, verbose)


@app.command("update")
def update(
    issue_id: Annotated[str, typer.Argument(help="ENG-123, a linear.app URL, or a UUID")],
    state: Annotated[str | None, typer.Option("--state", help="State name, matched fuzzily")] = None,
    priority: PriorityOpt = None,
    assignee: Annotated[str | None, typer.Option("--assignee", help="Email, 'me', or 'null' to unassign")] = None,
    label: LabelOpt = None,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Change state, priority, assignee or labels."""
    fields: dict = {}
    if state:
        fields["state"] = state
    if priority is not None:
        fields["priority"] = priority
    if assignee is not None:
        fields["assignee"] = None if assignee == "null" else assignee
    if label:
        fields["labels"] = label
    if not fields:
        typer.echo("Error: At least one update option is required", err=True)
        typer.echo(
            "Usage: streamlinear update <id> [--state <name>] [--priority <0-4>] [--assignee <email|me|null>]",
            err=True,
        )
        raise typer.Exit(1)
    _run({"action": "update", "id": issue_id, **fields}, token, token_cmd, verbose)


@app.command("comment")
def comment(
    issue_id: Annotated[str, typer.Argument(help="ENG-123, a linear.app URL, or a UUID")],
    body: Annotated[list[str] | None, typer.Argument(help="Comment text")] = None,
    body_opt: Annotated[str | None, typer.Option("--body", help="Comment text")] = None,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Add a comment to an issue."""
    text = " ".join(body) if body else body_opt
    if not text:
        typer.echo("Error: Issue ID and comment body are required", err=True)
        typer.echo("Usage: streamlinear comment <id> <body>", err=True)
        raise typer.Exit(1)
    _run({"action": "comment", "id": issue_id, "body": text}, token, token_cmd, verbose)


@app.command("create")
def create(
    title: Annotated[str, typer.Option("--title", help="Issue title")],
    team: Annotated[str, typer.Option("--team", "-t", help="Team key or name")],
    body: Annotated[str | None, typer.Option("--body", help="Issue description (markdown)")] = None,
    priority: PriorityOpt = None,
    label: LabelOpt = None,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Create a new issue."""
    payload = {
        "action": "create",
        "title": title,
        "team": team,
        "body": body,
        "priority": priority,
        "labels": label or None,
    }
    _run(payload, token, token_cmd, verbose)


@app.command("graphql")
def graphql(
    query: Annotated[list[str], typer.Argument(help="GraphQL query or mutation")],
    variables: Annotated[str | None, typer.Option("--variables", help="JSON object of variables")] = None,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Run raw GraphQL against the Linear API."""
    parsed = None
    if variables:
        try:
            parsed = json.loads(variables)
        except json.JSONDecodeError as exc:
            raise _fail(f"--variables is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise _fail("--variables must be a JSON object")
    _run({"action": "graphql", "graphql": " ".join(query), "variables": parsed}, token, token_cmd, verbose)


@app.command("teams")
def teams(
    plain: Annotated[bool, typer.Option("--plain", help="Markdown text instead of a table")] = False,
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """List teams and their workflow states."""
    try:
        dispatcher = get_dispatcher(token, token_cmd, verbose)
        if plain:
            typer.echo(dispatcher.teams_overview())
            return
        catalog = dispatcher.cache.get_teams()
    except (StreamlinearError, httpx.HTTPError) as exc:
        raise _fail(str(exc)) from exc

    table = Table(title="Teams")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("States")

    for t in catalog:
        table.add_row(t.key, t.name, ", ".join(s.name for s in t.states))

    rprint(table)


@app.command("me")
def me(
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Show who the API token belongs to."""
    _run({"action": "me"}, token, token_cmd, verbose)


@app.command("help")
def help_cmd() -> None:
    """Show the action reference (no API token needed)."""
    typer.echo(HELP_TEXT)


@app.command("config-show")
def config_show(
    token: TokenOpt = None,
    token_cmd: TokenCmdOpt = None,
) -> None:
    """Show resolved configuration (masks credentials)."""
    settings = get_settings()
    try:
        api_token = resolve_token(settings, token=token, token_cmd=token_cmd)
    except ConfigurationError as exc:
        raise _fail(str(exc)) from exc

    def mask(val: str | None, prefix: str = "") -> str:
        if val is None:
            return "[dim](not set)[/dim]"
        if len(val) <= 5:
            return "***"
        return f"{prefix}...{val[-5:]}"

    table = Table(title="streamlinear configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("api_token", mask(api_token, prefix="lin_api_"))
    table.add_row("token_cmd", token_cmd or settings.token_cmd or "[dim](not set)[/dim]")
    table.add_row("token_env", settings.token_env)
    table.add_row("endpoint", settings.endpoint)
    table.add_row("timeout", str(settings.timeout))
    table.add_row("log_level", settings.log_level)

    rprint(table)

