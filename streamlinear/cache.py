"""Process-lifetime cache of the viewer and the team/workflow-state catalog."""

import logging
import threading
from typing import Protocol

from streamlinear.models import Team, Viewer

log = logging.getLogger(__name__)

_VIEWER = """
query Viewer {
  viewer { id name email }
}
"""

_TEAMS = """
query Teams {
  teams {
    nodes {
      id
      key
      name
      states { nodes { id name type } }
    }
  }
}
"""


class GraphQLExecutor(Protocol):
    def execute(self, query: str, variables: dict | None = None) -> dict: ...


class ReferenceCache:
    """Lazily loaded, never invalidated reference data.

    Each entry has its own lock so concurrent first reads collapse into a
    single fetch. Values are read-only once set; a new cache is the only way
    to see team or workflow changes.
    """

    def __init__(self, client: GraphQLExecutor) -> None:
        self._client = client
        self._teams: list[Team] | None = None
        self._viewer: Viewer | None = None
        self._teams_lock = threading.Lock()
        self._viewer_lock = threading.Lock()

    def get_teams(self) -> list[Team]:
        if self._teams is not None:
            return self._teams
        with self._teams_lock:
            if self._teams is None:
                data = self._client.execute(_TEAMS)
                self._teams = [Team.from_node(n) for n in data["teams"]["nodes"]]
                log.debug("cached %d teams", len(self._teams))
        return self._teams

    def get_viewer(self) -> Viewer:
        if self._viewer is not None:
            return self._viewer
        with self._viewer_lock:
            if self._viewer is None:
                data = self._client.execute(_VIEWER)
                self._viewer = Viewer(**data["viewer"])
                log.debug("cached viewer %s", self._viewer.email)
        return self._viewer

    def find_team(self, team_id: str) -> Team | None:
        return next((t for t in self.get_teams() if t.id == team_id), None)
