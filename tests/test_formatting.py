"""Tests for streamlinear.formatting."""

import pytest

from streamlinear.formatting import (
    HELP_TEXT,
    NO_ISSUES,
    comment_preview,
    format_issue,
    format_issue_detail,
    format_issue_list,
    format_teams,
    format_viewer,
    priority_name,
    tool_description,
)
from streamlinear.models import Comment, Issue, Team, Viewer, WorkflowState


def _issue(**overrides) -> Issue:
    fields = {
        "id": "uuid-1",
        "identifier": "ENG-123",
        "title": "Fix null check in auth middleware",
        "state": "In Progress",
        "priority": 2,
        "assignee": "Jane Doe",
    }
    fields.update(overrides)
    return Issue(**fields)


class TestPriorityName:
    def test_known_labels_in_order(self) -> None:
        assert [priority_name(p) for p in range(5)] == ["No priority", "Urgent", "High", "Medium", "Low"]

    @pytest.mark.parametrize("priority", [-1, 5, 99, None])
    def test_unknown(self, priority: int | None) -> None:
        assert priority_name(priority) == "Unknown"


class TestFormatIssue:
    def test_minimal_layout(self) -> None:
        assert format_issue(_issue()) == (
            "**ENG-123**: Fix null check in auth middleware\n"
            "State: In Progress | Priority: High | Assignee: Jane Doe"
        )

    def test_full_layout(self) -> None:
        issue = _issue(
            due_date="2024-03-01",
            description="Throws when session is None.",
            url="https://linear.app/acme/issue/ENG-123",
        )
        assert format_issue(issue).splitlines() == [
            "**ENG-123**: Fix null check in auth middleware",
            "State: In Progress | Priority: High | Assignee: Jane Doe",
            "Due: 2024-03-01",
            "",
            "Throws when session is None.",
            "",
            "Link: https://linear.app/acme/issue/ENG-123",
        ]

    def test_unassigned_and_unknown_priority(self) -> None:
        text = format_issue(_issue(assignee=None, priority=7, state=None))
        assert "State: Unknown | Priority: Unknown | Assignee: Unassigned" in text

    def test_deterministic(self) -> None:
        issue = _issue(description="x")
        assert format_issue(issue) == format_issue(issue)


class TestFormatIssueDetail:
    def test_labels_and_comments(self) -> None:
        issue = _issue(
            labels=["bug", "auth"],
            comments=[Comment(body="Looking into it", created_at="2024-01-02T00:00:00Z", author="Bob")],
        )
        text = format_issue_detail(issue)
        assert "\nLabels: bug, auth" in text
        assert "## Recent Comments\n**Bob** (2024-01-02T00:00:00Z):\nLooking into it" in text

    def test_no_extras(self) -> None:
        assert format_issue_detail(_issue()) == format_issue(_issue())


class TestFormatIssueList:
    def test_empty(self) -> None:
        assert format_issue_list([]) == NO_ISSUES == "No issues found."

    def test_lines(self) -> None:
        issues = [_issue(), _issue(identifier="ENG-9", title="Other", state=None, priority=0, assignee=None)]
        assert format_issue_list(issues) == (
            "- **ENG-123** [In Progress] Fix null check in auth middleware (High, Jane Doe)\n"
            "- **ENG-9** [?] Other (No priority, Unassigned)"
        )


class TestCommentPreview:
    def test_short_body_unchanged(self) -> None:
        body = "x" * 100
        assert comment_preview(body) == body

    def test_long_body_truncated(self) -> None:
        preview = comment_preview("y" * 101)
        assert preview == "y" * 100 + "..."


class TestTeamText:
    @pytest.fixture
    def catalog(self) -> list[Team]:
        return [
            Team(
                id="t1",
                key="ENG",
                name="Engineering",
                states=[
                    WorkflowState(id="s1", name="Todo", type="unstarted"),
                    WorkflowState(id="s2", name="Blocked, waiting", type="started"),
                ],
            )
        ]

    def test_format_teams(self, catalog: list[Team]) -> None:
        assert format_teams(catalog) == (
            'Available teams and workflow states:\n\nENG (Engineering)\n  States: Todo, "Blocked, waiting"'
        )

    def test_tool_description_lists_states(self, catalog: list[Team]) -> None:
        text = tool_description(catalog)
        assert '  ENG: Todo, "Blocked, waiting"' in text
        assert '"team": "ENG"' in text

    def test_tool_description_without_teams(self) -> None:
        assert '"team": "KEY"' in tool_description([])

    def test_format_viewer(self, catalog: list[Team]) -> None:
        viewer = Viewer(id="u1", name="Jane Doe", email="jane@example.com")
        assert format_viewer(viewer, catalog) == (
            "**Jane Doe** <jane@example.com>\nID: u1\nTeams: ENG (Engineering)"
        )


def test_help_mentions_every_action() -> None:
    for action in ("search", "get", "update", "comment", "create", "graphql", "me"):
        assert f"**{action}**" in HELP_TEXT
