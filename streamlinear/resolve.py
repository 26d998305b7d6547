"""Turn human references (ENG-123, URLs, "done", "me", team keys) into Linear IDs."""

import re

from streamlinear.cache import GraphQLExecutor, ReferenceCache
from streamlinear.models import Team, WorkflowState

CURRENT_USER = "me"

_ISSUE_URL_RE = re.compile(r"/[^/]+/issue/([A-Z]+-\d+)", re.IGNORECASE)
_SHORT_ID_RE = re.compile(r"^[A-Z]+-\d+$", re.IGNORECASE)

# canonical label -> spellings people actually type
STATE_ALIASES: dict[str, tuple[str, ...]] = {
    "done": ("done", "complete", "completed", "finished"),
    "in progress": ("in progress", "started", "doing", "wip", "in prog"),
    "todo": ("todo", "to do", "backlog", "open"),
    "canceled": ("canceled", "cancelled", "closed", "wontfix"),
}

_USERS = """
query Users {
  users { nodes { id name email } }
}
"""

_TEAM_LABELS = """
query TeamLabels($id: String!) {
  team(id: $id) {
    labels { nodes { id name } }
  }
}
"""


def resolve_issue_id(ref: str) -> str:
    """Normalize an issue reference.

    - https://linear.app/acme/issue/eng-123/some-slug -> ENG-123
    - eng-123 -> ENG-123
    - anything else (UUIDs) is returned unchanged
    """
    url_match = _ISSUE_URL_RE.search(ref)
    if url_match:
        return url_match.group(1).upper()
    if _SHORT_ID_RE.match(ref):
        return ref.upper()
    return ref


def match_state(states: list[WorkflowState], name: str) -> WorkflowState | None:
    """Find a workflow state by exact name, then substring, then alias bucket."""
    lower = name.lower()

    for state in states:
        if state.name.lower() == lower:
            return state

    # only "catalog name contains query", never the reverse
    for state in states:
        if lower in state.name.lower():
            return state

    for canonical, spellings in STATE_ALIASES.items():
        if lower in spellings:
            for state in states:
                if canonical in state.name.lower():
                    return state

    return None


def match_team(teams: list[Team], ref: str) -> Team | None:
    lower = ref.lower()
    return next((t for t in teams if t.key.lower() == lower or t.name.lower() == lower), None)


def find_user_by_email(users: list[dict], email: str) -> dict | None:
    lower = email.lower()
    return next((u for u in users if (u.get("email") or "").lower() == lower), None)


class Resolver:
    """Resolution backed by the reference cache and, for users and labels, live queries."""

    def __init__(self, client: GraphQLExecutor, cache: ReferenceCache) -> None:
        self._client = client
        self._cache = cache

    def team(self, ref: str) -> Team | None:
        return match_team(self._cache.get_teams(), ref)

    def state(self, team_id: str, name: str) -> WorkflowState | None:
        team = self._cache.find_team(team_id)
        if team is None:
            return None
        return match_state(team.states, name)

    def assignee(self, ref: str) -> str | None:
        """Return the user ID for ``"me"`` or an email address, None when nobody matches."""
        if ref == CURRENT_USER:
            return self._cache.get_viewer().id
        data = self._client.execute(_USERS)
        user = find_user_by_email(data["users"]["nodes"], ref)
        return user["id"] if user else None

    def labels(self, team_id: str, names: list[str]) -> tuple[list[str], list[str], list[str]]:
        """Match label names case-insensitively against a team's labels.

        Returns (label IDs found, names not found, every available label name).
        """
        data = self._client.execute(_TEAM_LABELS, {"id": team_id})
        available = (data.get("team") or {}).get("labels", {}).get("nodes", [])
        by_name = {label["name"].lower(): label["id"] for label in available}
        ids: list[str] = []
        missing: list[str] = []
        for name in names:
            label_id = by_name.get(name.lower())
            if label_id:
                ids.append(label_id)
            else:
                missing.append(name)
        return ids, missing, [label["name"] for label in available]
