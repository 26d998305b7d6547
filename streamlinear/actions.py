"""Action requests: one pydantic model per action, tagged by ``action``."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from streamlinear.errors import RequestError

ACTIONS = ("search", "get", "update", "comment", "create", "graphql", "me", "help")

Priority = Annotated[int, Field(ge=0, le=4)]
Required = Annotated[str, Field(min_length=1)]


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class SearchFilter(_Request):
    assignee: str | None = None  # "me" or an email
    state: str | None = None
    priority: Priority | None = None
    team: str | None = None

    def is_empty(self) -> bool:
        return not self.model_fields_set


class SearchRequest(_Request):
    action: Literal["search"] = "search"
    query: str | SearchFilter | None = None


class GetRequest(_Request):
    action: Literal["get"] = "get"
    id: Required


class UpdateRequest(_Request):
    """Only fields the caller set are sent; ``assignee=None`` set explicitly unassigns."""

    action: Literal["update"] = "update"
    id: Required
    state: str | None = None
    priority: Priority | None = None
    assignee: str | None = None
    labels: list[str] | None = None

    @property
    def assignee_supplied(self) -> bool:
        return "assignee" in self.model_fields_set


class CommentRequest(_Request):
    action: Literal["comment"] = "comment"
    id: Required
    body: Required


class CreateRequest(_Request):
    action: Literal["create"] = "create"
    title: Required
    team: Required
    body: str | None = None
    priority: Priority | None = None
    labels: list[str] | None = None


class GraphqlRequest(_Request):
    action: Literal["graphql"] = "graphql"
    graphql: Required
    variables: dict[str, Any] | None = None


class MeRequest(_Request):
    action: Literal["me"] = "me"


class HelpRequest(_Request):
    action: Literal["help"] = "help"


ActionRequest = Annotated[
    Union[
        SearchRequest,
        GetRequest,
        UpdateRequest,
        CommentRequest,
        CreateRequest,
        GraphqlRequest,
        MeRequest,
        HelpRequest,
    ],
    Field(discriminator="action"),
]

_adapter: TypeAdapter[ActionRequest] = TypeAdapter(ActionRequest)


def _describe(exc: ValidationError, action: str) -> str:
    problems = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"]]
        # pydantic prefixes discriminated-union locations with the tag
        if loc and loc[0] == action:
            loc = loc[1:]
        field = ".".join(loc) or "request"
        if error["type"] == "missing" or (error["type"] == "string_too_short" and len(loc) == 1):
            problems.append(f"{field} is required for {action} action")
        else:
            problems.append(f"{field}: {error['msg']}")
    return "; ".join(problems)


def parse_request(payload: dict[str, Any]) -> ActionRequest:
    """Validate a loose mapping into a typed request, or raise RequestError.

    Keys whose value is None are treated as absent, except ``assignee`` on
    update where None means "unassign".
    """
    action = payload.get("action")
    if action not in ACTIONS:
        raise RequestError(f"Unknown action: {action}")

    cleaned = {k: v for k, v in payload.items() if v is not None or (action == "update" and k == "assignee")}
    try:
        return _adapter.validate_python(cleaned)
    except ValidationError as exc:
        raise RequestError(_describe(exc, action)) from exc
