"""Shared pydantic models for what the dispatcher reads back from Linear."""

from pydantic import BaseModel, ConfigDict

PRIORITY_LABELS = {0: "No priority", 1: "Urgent", 2: "High", 3: "Medium", 4: "Low"}

# State categories that the default search leaves out.
CLOSED_STATE_TYPES = ("completed", "canceled")


class WorkflowState(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str  # triage | backlog | unstarted | started | completed | canceled


class Team(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    key: str  # ENG
    name: str
    states: list[WorkflowState] = []

    @classmethod
    def from_node(cls, node: dict) -> "Team":
        states = node.get("states", {}).get("nodes", [])
        return cls(
            id=node["id"],
            key=node["key"],
            name=node["name"],
            states=[WorkflowState(**s) for s in states],
        )


class Viewer(BaseModel):
    """The user behind the active API token."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: str
    created_at: str | None = None
    author: str | None = None


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | None = None  # Linear UUID, absent on list queries
    identifier: str  # ENG-123
    title: str
    description: str | None = None
    url: str | None = None
    state: str | None = None
    priority: int | None = None
    assignee: str | None = None
    due_date: str | None = None
    estimate: float | None = None
    team: str | None = None  # team key
    labels: list[str] = []
    comments: list[Comment] = []

    @classmethod
    def from_node(cls, node: dict) -> "Issue":
        raw_comments = (node.get("comments") or {}).get("nodes", [])
        comments = [
            Comment(
                body=c["body"],
                created_at=c.get("createdAt"),
                author=(c.get("user") or {}).get("name"),
            )
            for c in raw_comments
        ]
        return cls(
            id=node.get("id"),
            identifier=node["identifier"],
            title=node["title"],
            description=node.get("description"),
            url=node.get("url"),
            state=(node.get("state") or {}).get("name"),
            priority=node.get("priority"),
            assignee=(node.get("assignee") or {}).get("name"),
            due_date=node.get("dueDate"),
            estimate=node.get("estimate"),
            team=(node.get("team") or {}).get("key"),
            labels=[label["name"] for label in (node.get("labels") or {}).get("nodes", [])],
            comments=comments,
        )
