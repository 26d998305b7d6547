"""Plain-text rendering of issues, teams and help. No network access here."""

from streamlinear.models import PRIORITY_LABELS, Issue, Team, Viewer

NO_ISSUES = "No issues found."

COMMENT_PREVIEW_LENGTH = 100


def priority_name(priority: int | None) -> str:
    return PRIORITY_LABELS.get(priority, "Unknown") if priority is not None else "Unknown"


def format_issue(issue: Issue) -> str:
    lines = [
        f"**{issue.identifier}**: {issue.title}",
        f"State: {issue.state or 'Unknown'} | Priority: {priority_name(issue.priority)} "
        f"| Assignee: {issue.assignee or 'Unassigned'}",
    ]
    if issue.due_date:
        lines.append(f"Due: {issue.due_date}")
    if issue.description:
        lines += ["", issue.description]
    if issue.url:
        lines += ["", f"Link: {issue.url}"]
    return "\n".join(lines)


def format_issue_detail(issue: Issue) -> str:
    """Single-issue layout plus labels and the recent comment thread."""
    result = format_issue(issue)
    if issue.labels:
        result += f"\nLabels: {', '.join(issue.labels)}"
    if issue.comments:
        result += "\n\n## Recent Comments\n"
        result += "\n\n".join(f"**{c.author}** ({c.created_at}):\n{c.body}" for c in issue.comments)
    return result


def format_issue_list(issues: list[Issue]) -> str:
    if not issues:
        return NO_ISSUES
    return "\n".join(
        f"- **{i.identifier}** [{i.state or '?'}] {i.title} "
        f"({priority_name(i.priority)}, {i.assignee or 'Unassigned'})"
        for i in issues
    )


def comment_preview(body: str) -> str:
    if len(body) > COMMENT_PREVIEW_LENGTH:
        return body[:COMMENT_PREVIEW_LENGTH] + "..."
    return body


def team_choices(teams: list[Team]) -> str:
    return ", ".join(f"{t.key} ({t.name})" for t in teams)


def _state_names(team: Team) -> str:
    # quote names that would break a comma-separated list
    return ", ".join(f'"{s.name}"' if "," in s.name else s.name for s in team.states)


def format_teams(teams: list[Team]) -> str:
    lines = ["Available teams and workflow states:", ""]
    for team in teams:
        lines += [f"{team.key} ({team.name})", f"  States: {_state_names(team)}", ""]
    return "\n".join(lines).rstrip()


def format_viewer(viewer: Viewer, teams: list[Team]) -> str:
    lines = [f"**{viewer.name}** <{viewer.email}>", f"ID: {viewer.id}"]
    if teams:
        lines.append(f"Teams: {team_choices(teams)}")
    return "\n".join(lines)


def tool_description(teams: list[Team]) -> str:
    """Short MCP tool description that carries the team/state catalog."""
    team_lines = "\n".join(f"  {t.key}: {_state_names(t)}" for t in teams)
    first_key = teams[0].key if teams else "KEY"
    return f"""Linear issues. Actions: help, search, get, update, comment, create, graphql, me

Teams (workflow states):
{team_lines}

{{"action": "search"}} → your active issues
{{"action": "search", "query": "text"}} → text search
{{"action": "get", "id": "ABC-123"}} → issue details
{{"action": "update", "id": "ABC-123", "state": "Done"}}
{{"action": "create", "title": "Title", "team": "{first_key}"}}
{{"action": "help"}} → full documentation"""


HELP_TEXT = """# Linear

## Actions

**search** - Find issues
  {"action": "search"}                           → your active issues
  {"action": "search", "query": "auth bug"}      → text search
  {"action": "search", "query": {"state": "In Progress", "assignee": "me"}}

**get** - Issue details (accepts ABC-123, URLs, or UUIDs)
  {"action": "get", "id": "ABC-123"}

**update** - Change state, priority, assignee, labels
  {"action": "update", "id": "ABC-123", "state": "Done"}
  {"action": "update", "id": "ABC-123", "priority": 1}
  {"action": "update", "id": "ABC-123", "assignee": "me"}
  {"action": "update", "id": "ABC-123", "assignee": null}  → unassign
  {"action": "update", "id": "ABC-123", "labels": ["bug"]}  → replaces labels

**comment** - Add comment to issue
  {"action": "comment", "id": "ABC-123", "body": "Fixed in abc123"}

**create** - Create new issue
  {"action": "create", "title": "Bug title", "team": "ENG"}
  {"action": "create", "title": "Bug", "team": "ENG", "body": "Details", "priority": 2}

**graphql** - Raw GraphQL for anything else
  {"action": "graphql", "graphql": "query { projects { nodes { id name } } }"}

**me** - Who the API token belongs to, and its teams
  {"action": "me"}

## Reference

Priority: 0=None, 1=Urgent, 2=High, 3=Medium, 4=Low

Query filters: {assignee: "me"|email, state: "name", priority: 0-4, team: "KEY"}

Search default: your issues, excluding completed/canceled

State matching is fuzzy: "done" → "Done", "in prog" → "In Progress"

IDs accept: ABC-123, linear.app URLs, or UUIDs"""
