"""Shared test fixtures."""

import pytest

from streamlinear.dispatcher import Dispatcher
from streamlinear.errors import LinearAPIError
from streamlinear.models import Team, Viewer, WorkflowState
from tests.fakes import TEAM_NODES, VIEWER_NODE, FakeLinear


@pytest.fixture
def fake_linear() -> FakeLinear:
    return FakeLinear()


@pytest.fixture
def dispatcher(fake_linear: FakeLinear) -> Dispatcher:
    return Dispatcher(fake_linear)


@pytest.fixture
def teams() -> list[Team]:
    return [Team.from_node(n) for n in TEAM_NODES]


@pytest.fixture
def eng_states(teams: list[Team]) -> list[WorkflowState]:
    return teams[0].states


@pytest.fixture
def viewer() -> Viewer:
    return Viewer(**VIEWER_NODE)


@pytest.fixture
def not_found_error() -> LinearAPIError:
    return LinearAPIError(["Entity not found: Issue"])
