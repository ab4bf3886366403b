"""GitHub repository_dispatch gateway.

The dbt repository runs a workflow on ``repository_dispatch`` that renders
each template in the plan into its model path and opens a pull request.
This module only delivers the plan:

    POST /repos/{owner}/{repo}/dispatches
    {"event_type": "bq_dataset_created", "client_payload": {datasetId, files, vars}}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from dbt_dispatch.config import Settings
from dbt_dispatch.plan import BuildPlan

logger = logging.getLogger(__name__)


class GitHubDispatchError(Exception):
    """Error delivering a plan to GitHub."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class DispatchResult:
    """Result of a dispatch.

    Attributes:
        dataset_id: Dataset the plan was built for
        file_count: Number of files in the plan
        dry_run: True if GitHub was not called
        status_code: HTTP status returned by GitHub (None for dry runs)
        message: Human-readable summary
        metadata: Additional details about the dispatch
    """

    dataset_id: str
    file_count: int
    dry_run: bool = False
    status_code: int | None = None
    message: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


class Dispatcher(Protocol):
    """Anything that can hand a build plan to the CI system."""

    def dispatch(self, plan: BuildPlan, dry_run: bool = False) -> DispatchResult:
        """Deliver a plan.

        Args:
            plan: Resolved build plan
            dry_run: If True, report what would be sent without sending it

        Raises:
            GitHubDispatchError: If delivery fails
        """
        ...


class GitHubDispatcher:
    """Trigger the dbt repository workflow through repository_dispatch.

    Requires a token allowed to create repository dispatch events
    (classic PAT with 'repo' scope, or fine-grained with Contents: write).

    Example:
        dispatcher = GitHubDispatcher(get_settings())
        result = dispatcher.dispatch(plan)
    """

    API_VERSION = "2022-11-28"

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            settings: Dispatcher settings (token, repository, event type)
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings
        self.transport = transport

    def build_request_body(self, plan: BuildPlan) -> dict[str, Any]:
        return {
            "event_type": self.settings.event_type,
            "client_payload": plan.to_payload(),
        }

    def dispatch(self, plan: BuildPlan, dry_run: bool = False) -> DispatchResult:
        """Send a plan to GitHub.

        Args:
            plan: Resolved build plan
            dry_run: If True, skip the API call

        Returns:
            DispatchResult describing the dispatch

        Raises:
            GitHubDispatchError: If no token is configured or GitHub rejects the event
        """
        metadata = {
            "repo": self.settings.repo_slug,
            "event_type": self.settings.event_type,
        }

        if dry_run or self.settings.dry_run:
            return DispatchResult(
                dataset_id=plan.dataset_id,
                file_count=len(plan.files),
                dry_run=True,
                message=(
                    f"Would dispatch {len(plan.files)} files for {plan.dataset_id} "
                    f"to {self.settings.repo_slug}"
                ),
                metadata=metadata,
            )

        token = self.settings.github_token
        if token is None or not token.get_secret_value():
            raise GitHubDispatchError(
                "No GitHub token available. Set GITHUB_TOKEN or DBT_DISPATCH_GITHUB_TOKEN."
            )

        headers = {
            "Authorization": f"Bearer {token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.API_VERSION,
        }

        try:
            with httpx.Client(
                headers=headers,
                timeout=self.settings.timeout_seconds,
                transport=self.transport,
            ) as client:
                response = client.post(
                    self.settings.dispatch_url, json=self.build_request_body(plan)
                )
        except httpx.HTTPError as e:
            raise GitHubDispatchError(
                f"GitHub request failed for {plan.dataset_id}: {e}"
            ) from e

        self._check_response(response)
        logger.info(
            "Dispatched %s (%d files) to %s",
            plan.dataset_id,
            len(plan.files),
            self.settings.repo_slug,
        )

        return DispatchResult(
            dataset_id=plan.dataset_id,
            file_count=len(plan.files),
            status_code=response.status_code,
            message=f"Dispatched {len(plan.files)} files to {self.settings.repo_slug}",
            metadata=metadata,
        )

    def _check_response(self, response: httpx.Response) -> None:
        """Raise on any non-2xx response.

        Raises:
            GitHubDispatchError: If the response indicates an error
        """
        if response.is_success:
            return

        message = response.text
        try:
            error_data: Any = response.json()
        except ValueError:
            error_data = None
        if isinstance(error_data, dict):
            message = str(error_data.get("message", response.text))

        status = response.status_code
        if status == 401:
            raise GitHubDispatchError(
                "GitHub authentication failed. The token may be invalid or expired.",
                status_code=401,
            )
        elif status == 403:
            raise GitHubDispatchError(
                f"GitHub permission denied: {message}. "
                "Ensure the token can create repository dispatch events.",
                status_code=403,
            )
        elif status == 404:
            raise GitHubDispatchError(
                f"GitHub repository not found: {message}. "
                f"Check that '{self.settings.repo_slug}' exists and the token can see it.",
                status_code=404,
            )
        elif status == 422:
            raise GitHubDispatchError(
                f"GitHub rejected the dispatch payload: {message}",
                status_code=422,
            )
        else:
            raise GitHubDispatchError(
                f"GitHub dispatch failed: {status} {message}",
                status_code=status,
            )
