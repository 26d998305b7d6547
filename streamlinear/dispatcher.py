"""Single entry point: route an action request to its handler and render text."""

import json
import logging
from typing import Any

from streamlinear.actions import (
    ActionRequest,
    CommentRequest,
    CreateRequest,
    GetRequest,
    GraphqlRequest,
    HelpRequest,
    MeRequest,
    SearchFilter,
    SearchRequest,
    UpdateRequest,
    parse_request,
)
from streamlinear.cache import GraphQLExecutor, ReferenceCache
from streamlinear.errors import LinearAPIError
from streamlinear.formatting import (
    HELP_TEXT,
    comment_preview,
    format_issue_detail,
    format_issue_list,
    format_teams,
    format_viewer,
    priority_name,
    team_choices,
    tool_description,
)
from streamlinear.models import CLOSED_STATE_TYPES, Issue
from streamlinear.resolve import CURRENT_USER, Resolver, resolve_issue_id

log = logging.getLogger(__name__)

PAGE_SIZE = 20
RECENT_COMMENTS = 5

_LIST_FIELDS = "id identifier title state { name } priority assignee { name } dueDate"

_SEARCH_ISSUES = f"""
query SearchIssues($term: String!, $first: Int!) {{
  searchIssues(term: $term, first: $first) {{
    nodes {{ {_LIST_FIELDS} }}
  }}
}}
"""

_LIST_ISSUES = f"""
query ListIssues($filter: IssueFilter, $first: Int!) {{
  issues(filter: $filter, first: $first, orderBy: updatedAt) {{
    nodes {{ {_LIST_FIELDS} }}
  }}
}}
"""

_GET_ISSUE = """
query GetIssue($id: String!, $comments: Int!) {
  issue(id: $id) {
    id identifier title description url priority dueDate estimate
    state { name }
    assignee { name email }
    labels { nodes { name } }
    team { id key name }
    comments(first: $comments) {
      nodes { body createdAt user { name } }
    }
  }
}
"""

_ISSUE_TEAM = """
query IssueTeam($id: String!) {
  issue(id: $id) { id identifier team { id } }
}
"""

_UPDATE_ISSUE = """
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue { identifier title state { name } priority assignee { name } labels { nodes { name } } }
  }
}
"""

_CREATE_COMMENT = """
mutation CreateComment($issueId: String!, $body: String!) {
  commentCreate(input: { issueId: $issueId, body: $body }) {
    success
  }
}
"""

_CREATE_ISSUE = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { identifier title url }
  }
}
"""


def _is_not_found(exc: LinearAPIError) -> bool:
    return any(m.lower().startswith("entity not found") for m in exc.messages)


class Dispatcher:
    def __init__(self, client: GraphQLExecutor, cache: ReferenceCache | None = None) -> None:
        self._client = client
        self.cache = cache or ReferenceCache(client)
        self._resolver = Resolver(client, self.cache)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def dispatch_payload(self, payload: dict[str, Any]) -> str:
        return self.dispatch(parse_request(payload))

    def dispatch(self, request: ActionRequest) -> str:
        log.debug("dispatch %s", request.action)
        match request:
            case SearchRequest():
                return self.search(request.query)
            case GetRequest():
                return self.get(request.id)
            case UpdateRequest():
                return self.update(request)
            case CommentRequest():
                return self.comment(request.id, request.body)
            case CreateRequest():
                return self.create(request)
            case GraphqlRequest():
                return self.graphql(request.graphql, request.variables)
            case MeRequest():
                return self.me()
            case HelpRequest():
                return HELP_TEXT
            case _:
                raise TypeError(f"Unhandled request type: {type(request).__name__}")

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def search(self, query: str | SearchFilter | None) -> str:
        if isinstance(query, str) and query:
            data = self._client.execute(_SEARCH_ISSUES, {"term": query, "first": PAGE_SIZE})
            return format_issue_list([Issue.from_node(n) for n in data["searchIssues"]["nodes"]])

        if isinstance(query, SearchFilter) and not query.is_empty():
            issue_filter: dict[str, Any] = {}
            if query.assignee == CURRENT_USER:
                issue_filter["assignee"] = {"id": {"eq": self.cache.get_viewer().id}}
            elif query.assignee:
                issue_filter["assignee"] = {"email": {"eq": query.assignee}}
            if query.state:
                issue_filter["state"] = {"name": {"eqIgnoreCase": query.state}}
            if query.priority is not None:
                issue_filter["priority"] = {"eq": query.priority}
            if query.team:
                team = self._resolver.team(query.team)
                if team is None:
                    return self._team_not_found(query.team)
                issue_filter["team"] = {"id": {"eq": team.id}}
        elif isinstance(query, SearchFilter):
            issue_filter = {}
        else:
            issue_filter = {
                "assignee": {"id": {"eq": self.cache.get_viewer().id}},
                "state": {"type": {"nin": list(CLOSED_STATE_TYPES)}},
            }

        data = self._client.execute(_LIST_ISSUES, {"filter": issue_filter or None, "first": PAGE_SIZE})
        return format_issue_list([Issue.from_node(n) for n in data["issues"]["nodes"]])

    def get(self, ref: str) -> str:
        try:
            data = self._client.execute(_GET_ISSUE, {"id": resolve_issue_id(ref), "comments": RECENT_COMMENTS})
        except LinearAPIError as exc:
            if not _is_not_found(exc):
                raise
            data = {}
        if not data.get("issue"):
            return f"Issue {ref} not found"
        return format_issue_detail(Issue.from_node(data["issue"]))

    def _issue_ref(self, ref: str) -> dict | None:
        """Fetch just the UUID, identifier and team of an issue, None if Linear has no such issue."""
        try:
            data = self._client.execute(_ISSUE_TEAM, {"id": resolve_issue_id(ref)})
        except LinearAPIError as exc:
            if not _is_not_found(exc):
                raise
            return None
        return data.get("issue")

    def update(self, request: UpdateRequest) -> str:
        issue = self._issue_ref(request.id)
        if issue is None:
            return f"Issue {request.id} not found"
        team_id = issue["team"]["id"]

        update_input: dict[str, Any] = {}

        if request.state:
            state = self._resolver.state(team_id, request.state)
            if state is None:
                team = self.cache.find_team(team_id)
                valid = ", ".join(s.name for s in team.states) if team else "unknown"
                return f'State "{request.state}" not found. Valid states: {valid}'
            update_input["stateId"] = state.id

        if request.priority is not None:
            update_input["priority"] = request.priority

        if request.assignee_supplied:
            if request.assignee is None:
                update_input["assigneeId"] = None
            else:
                user_id = self._resolver.assignee(request.assignee)
                if user_id is None:
                    return f'Could not find user with email "{request.assignee}"'
                update_input["assigneeId"] = user_id

        if request.labels is not None:
            label_ids, missing, available = self._resolver.labels(team_id, request.labels)
            if missing:
                return self._labels_not_found(missing, available)
            update_input["labelIds"] = label_ids

        if not update_input:
            return "No updates provided"

        data = self._client.execute(_UPDATE_ISSUE, {"id": issue["id"], "input": update_input})
        updated = data["issueUpdate"]["issue"]

        changes = []
        if "stateId" in update_input:
            changes.append(f"state → {(updated.get('state') or {}).get('name')}")
        if "priority" in update_input:
            changes.append(f"priority → {priority_name(updated.get('priority'))}")
        if "assigneeId" in update_input:
            changes.append(f"assignee → {(updated.get('assignee') or {}).get('name') or 'Unassigned'}")
        if "labelIds" in update_input:
            names = [label["name"] for label in (updated.get("labels") or {}).get("nodes", [])]
            changes.append(f"labels → {', '.join(names) or 'none'}")
        return f"Updated {updated['identifier']}: {', '.join(changes)}"

    def comment(self, ref: str, body: str) -> str:
        issue = self._issue_ref(ref)
        if issue is None:
            return f"Issue {ref} not found"
        self._client.execute(_CREATE_COMMENT, {"issueId": issue["id"], "body": body})
        return f"Added comment to {issue['identifier']}:\n> {comment_preview(body)}"

    def create(self, request: CreateRequest) -> str:
        team = self._resolver.team(request.team)
        if team is None:
            return self._team_not_found(request.team)

        create_input: dict[str, Any] = {"title": request.title, "teamId": team.id}
        if request.body:
            create_input["description"] = request.body
        if request.priority is not None:
            create_input["priority"] = request.priority
        if request.labels:
            label_ids, missing, available = self._resolver.labels(team.id, request.labels)
            if missing:
                return self._labels_not_found(missing, available)
            create_input["labelIds"] = label_ids

        data = self._client.execute(_CREATE_ISSUE, {"input": create_input})
        created = data["issueCreate"]["issue"]
        return f"Created {created['identifier']}: {created['title']}\n{created['url']}"

    def graphql(self, query: str, variables: dict[str, Any] | None = None) -> str:
        return json.dumps(self._client.execute(query, variables or {}), indent=2)

    def me(self) -> str:
        return format_viewer(self.cache.get_viewer(), self.cache.get_teams())

    # ------------------------------------------------------------------
    # Cache-derived text for the adapters
    # ------------------------------------------------------------------

    def teams_overview(self) -> str:
        return format_teams(self.cache.get_teams())

    def tool_description(self) -> str:
        return tool_description(self.cache.get_teams())

    def _team_not_found(self, ref: str) -> str:
        return f'Team "{ref}" not found. Available: {team_choices(self.cache.get_teams())}'

    @staticmethod
    def _labels_not_found(missing: list[str], available: list[str]) -> str:
        return f"Label(s) not found: {', '.join(missing)}. Available: {', '.join(available) or 'none'}"
