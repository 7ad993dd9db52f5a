"""
Jira Adapter - Implements IssueTrackerPort for Atlassian Jira.

Translates between Ticket/Task entities and Jira issues:

- title <-> summary
- description <-> description, with acceptance criteria appended under an
  "h3. Acceptance Criteria" heading as "* item" lines
- custom fields <-> Jira fields, through the configured field mappings
- tasks <- subtasks (key and summary)
"""

import logging
from typing import Any

from ticketr.core.domain.entities import Task, Ticket
from ticketr.core.exceptions import TrackerError
from ticketr.core.ports.config_provider import TrackerConfig
from ticketr.core.ports.issue_tracker import IssueTrackerPort, ProgressCallback

from .client import JiraApiClient
from .fields import FieldMapping, build_field_mappings


ACCEPTANCE_CRITERIA_HEADING = "h3. Acceptance Criteria"

# Fields Jira refuses on edit, or that must not change when a task is updated
CREATE_ONLY_FIELDS = ("project", "issuetype")


class JiraAdapter(IssueTrackerPort):
    """
    Jira implementation of the IssueTrackerPort.

    Deletion is not exposed; supports_delete stays False.
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        config: TrackerConfig,
        dry_run: bool = False,
        client: JiraApiClient | None = None,
    ):
        """
        Initialize the Jira adapter.

        Args:
            config: Tracker configuration
            dry_run: If True, don't make changes
            client: Optional preconfigured API client
        """
        self.config = config
        self.logger = logging.getLogger("JiraAdapter")
        self.field_mappings: dict[str, FieldMapping] = build_field_mappings(
            config.field_mappings
        )

        self._client = client or JiraApiClient(
            base_url=config.url,
            email=config.email,
            api_token=config.api_token,
            dry_run=dry_run,
        )

    # -------------------------------------------------------------------------
    # IssueTrackerPort Implementation - Connection
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Jira"

    def authenticate(self) -> None:
        user = self._client.get_myself()
        self.logger.info(
            f"Authenticated as {user.get('displayName', user.get('emailAddress', 'unknown'))}"
        )

    def test_connection(self) -> bool:
        return self._client.test_connection()

    def get_current_user(self) -> dict[str, Any]:
        return self._client.get_myself()

    # -------------------------------------------------------------------------
    # IssueTrackerPort Implementation - Read Operations
    # -------------------------------------------------------------------------

    def search_tickets(
        self,
        project_key: str,
        jql: str,
        progress_callback: ProgressCallback | None = None,
    ) -> list[Ticket]:
        query = jql or self._project_query(project_key)
        fields = self._search_fields()

        tickets: list[Ticket] = []
        start_at = 0
        while True:
            data = self._client.search(query, fields, start_at=start_at, max_results=self.PAGE_SIZE)
            if "issues" not in data:
                raise TrackerError("Search response missing issues array")

            issues = data["issues"] or []
            total = int(data.get("total", start_at + len(issues)))
            tickets.extend(self._parse_issue(issue) for issue in issues)
            start_at += len(issues)

            if progress_callback is not None:
                progress_callback(len(tickets), total, f"Fetched {len(tickets)} of {total} tickets")

            if not issues or start_at >= total:
                break

        self.logger.debug(f"Search returned {len(tickets)} tickets for: {query}")
        return tickets

    def _project_query(self, project_key: str) -> str:
        key = project_key or self.config.project_key
        if not key:
            raise TrackerError("A project key or a search query is required")
        return f'project = "{key}"'

    def _search_fields(self) -> list[str]:
        fields = ["summary", "description", "issuetype", "parent", "subtasks"]
        for mapping in self.field_mappings.values():
            if mapping.field_id not in fields:
                fields.append(mapping.field_id)
        return fields

    # -------------------------------------------------------------------------
    # IssueTrackerPort Implementation - Write Operations
    # -------------------------------------------------------------------------

    def create_ticket(self, ticket: Ticket) -> str:
        fields = self._build_fields(
            ticket.title,
            ticket.description,
            ticket.acceptance_criteria,
            ticket.custom_fields,
        )
        fields.setdefault("issuetype", {"name": self.config.story_type})
        data = self._client.post("issue", json={"fields": fields})
        return self._created_key(data, ticket.title)

    def update_ticket(self, ticket: Ticket) -> None:
        if not ticket.jira_id:
            raise TrackerError(f"Ticket '{ticket.title}' has no Jira ID")
        fields = self._build_fields(
            ticket.title,
            ticket.description,
            ticket.acceptance_criteria,
            ticket.custom_fields,
        )
        for name in CREATE_ONLY_FIELDS:
            fields.pop(name, None)
        self._client.put(f"issue/{ticket.jira_id}", json={"fields": fields})

    def create_task(self, task: Task, parent_id: str) -> str:
        fields = self._build_fields(
            task.title,
            task.description,
            task.acceptance_criteria,
            task.custom_fields,
        )
        # Inherited parent fields must not change what a sub-task is or where it lives
        fields["issuetype"] = {"name": self.config.subtask_type}
        fields["parent"] = {"key": parent_id}
        data = self._client.post("issue", json={"fields": fields})
        return self._created_key(data, task.title)

    def update_task(self, task: Task) -> None:
        if not task.jira_id:
            raise TrackerError(f"Task '{task.title}' has no Jira ID")
        fields = self._build_fields(
            task.title,
            task.description,
            task.acceptance_criteria,
            task.custom_fields,
        )
        for name in (*CREATE_ONLY_FIELDS, "parent"):
            fields.pop(name, None)
        self._client.put(f"issue/{task.jira_id}", json={"fields": fields})

    def _created_key(self, data: dict[str, Any], title: str) -> str:
        key = data.get("key", "")
        if not key and not self._client.dry_run:
            raise TrackerError(f"Jira did not return a key for '{title}'")
        return key

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def _build_fields(
        self,
        title: str,
        description: str,
        acceptance_criteria: list[str],
        custom_fields: dict[str, str],
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "summary": title,
            "description": format_description(description, acceptance_criteria),
        }
        if self.config.project_key:
            fields["project"] = {"key": self.config.project_key}

        for name, value in custom_fields.items():
            mapping = self.field_mappings.get(name)
            if mapping is None:
                self.logger.debug(f"No Jira mapping for field '{name}', skipping")
                continue
            fields[mapping.field_id] = mapping.to_jira(value)
        return fields

    def _parse_issue(self, issue: dict[str, Any]) -> Ticket:
        fields = issue.get("fields") or {}
        description, criteria = parse_description(fields.get("description") or "")

        ticket = Ticket(
            jira_id=issue.get("key", ""),
            title=fields.get("summary") or "",
            description=description,
            acceptance_criteria=criteria,
        )

        for name, mapping in self.field_mappings.items():
            if mapping.field_id not in fields:
                continue
            text = mapping.from_jira(fields[mapping.field_id])
            if text:
                ticket.custom_fields[name] = text

        for subtask in fields.get("subtasks") or []:
            sub_fields = subtask.get("fields") or {}
            ticket.tasks.append(
                Task(
                    jira_id=subtask.get("key", ""),
                    title=sub_fields.get("summary") or "",
                )
            )

        return ticket


def format_description(description: str, acceptance_criteria: list[str]) -> str:
    """Append acceptance criteria to a description in Jira wiki markup."""
    if not acceptance_criteria:
        return description
    lines = "".join(f"* {criterion}\n" for criterion in acceptance_criteria)
    return f"{description}\n\n{ACCEPTANCE_CRITERIA_HEADING}\n{lines}"


def parse_description(text: str) -> tuple[str, list[str]]:
    """Split a Jira description into plain description and acceptance criteria."""
    body, _, criteria_block = text.partition(ACCEPTANCE_CRITERIA_HEADING)
    criteria = [
        line.strip()[2:]
        for line in criteria_block.splitlines()
        if line.strip().startswith("* ")
    ]
    return body.strip(), criteria
