"""Linear GraphQL transport: one POST per query, errors aggregated."""

import logging
import re

import httpx

from streamlinear.errors import ConfigurationError, LinearAPIError

ENDPOINT = "https://api.linear.app/graphql"

log = logging.getLogger(__name__)

_OPERATION_RE = re.compile(r"\b(query|mutation)\s+(\w+)")


def _operation_name(query: str) -> str:
    match = _OPERATION_RE.search(query)
    return match.group(2) if match else "anonymous"


class LinearClient:
    def __init__(self, api_token: str | None, endpoint: str = ENDPOINT, timeout: float = 30.0) -> None:
        if not api_token or not api_token.strip():
            raise ConfigurationError(
                "Linear API token required (set LINEAR_API_TOKEN or any LINEAR*_API_TOKEN environment variable)"
            )
        self._api_key = api_token.strip()
        self._endpoint = endpoint
        self._timeout = timeout

    def execute(self, query: str, variables: dict | None = None) -> dict:
        """Send one query or mutation and return its ``data`` payload.

        A GraphQL ``errors`` list becomes a single LinearAPIError with the
        messages newline-joined, as does a 2xx body that is not JSON. Transport failures propagate as httpx errors.
        """
        log.debug("linear %s variables=%s", _operation_name(query), sorted((variables or {}).keys()))
        response = httpx.post(
            self._endpoint,
            json={"query": query, "variables": variables or {}},
            headers={
                "Authorization": self._api_key,
                "Content-Type": "application/json",
            },
            timeout=self._timeout,
        )
        try:
            body = response.json()
        except ValueError as exc:
            response.raise_for_status()
            raise LinearAPIError([f"Invalid response from Linear (HTTP {response.status_code})"]) from exc
        if not isinstance(body, dict):
            response.raise_for_status()
            raise LinearAPIError([f"Invalid response from Linear (HTTP {response.status_code})"])
        if body.get("errors"):
            messages = [e.get("message", str(e)) for e in body["errors"]]
            log.debug("linear %s failed: %s", _operation_name(query), messages)
            raise LinearAPIError(messages)
        response.raise_for_status()
        return body.get("data") or {}
