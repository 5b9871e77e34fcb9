"""
Linear GraphQL API client.

Wraps the single GraphQL endpoint with the lookups the Linear skill needs:
teams, workflow states, users, projects and attachments.
"""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from agent_skills.config.loader import DEFAULT_LINEAR_API_URL
from agent_skills.core.errors import ApiError
from agent_skills.core.images import DEFAULT_TARGET_KB, image_to_data_uri

logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Z]+-\d+$")
UUID_PATTERN = re.compile(r"^[a-f0-9-]{36}$", re.IGNORECASE)

ICON_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}
EMBEDDABLE_EXTENSIONS = ICON_EXTENSIONS | {".svg"}

# Normalised status name -> Linear workflow state type
STATUS_TYPES = {
    "backlog": "backlog",
    "todo": "unstarted",
    "inprogress": "started",
    "done": "completed",
    "canceled": "canceled",
}
VALID_STATUSES = "backlog, todo, in_progress, done, canceled"

TEAMS_QUERY = """
query GetTeams {
  teams {
    nodes {
      id
      key
      name
      description
      private
      activeCycle { name startsAt endsAt }
    }
  }
}
"""

TEAM_STATES_QUERY = """
query GetTeamStates($teamId: String!) {
  team(id: $teamId) {
    states { nodes { id name type } }
  }
}
"""

USERS_QUERY = """
query GetUsers {
  users { nodes { id email name } }
}
"""

_USER_FIELDS = """
  id
  name
  displayName
  email
  avatarUrl
  active
  admin
  guest
  createdAt
  lastSeen
  timezone
  assignedIssues { nodes { id identifier title state { name } } }
  createdIssues { nodes { id identifier title state { name } } }
  teamMemberships { nodes { team { key name } } }
"""

VIEWER_QUERY = """
query GetCurrentUser {
  viewer {
%s
    organization { name urlKey }
  }
}
""" % _USER_FIELDS

USERS_DETAIL_QUERY = """
query GetUsersDetail {
  users {
    nodes {
%s
    }
  }
}
""" % _USER_FIELDS

_PROJECT_FIELDS = """
  id
  name
  description
  state
  progress
  targetDate
  createdAt
  lead { name email }
  members { nodes { name } }
"""

PROJECTS_QUERY = """
query GetProjects {
  projects {
    nodes {
%s
      teams { nodes { key name } }
    }
  }
}
""" % _PROJECT_FIELDS

TEAM_PROJECTS_QUERY = """
query GetTeamProjects($teamKey: String!) {
  team(id: $teamKey) {
    projects {
      nodes {
%s
      }
    }
  }
}
""" % _PROJECT_FIELDS

ISSUE_DETAIL_QUERY = """
query GetIssue($id: String!) {
  issue(id: $id) {
    id
    identifier
    title
    description
    priority
    estimate
    createdAt
    updatedAt
    completedAt
    canceledAt
    dueDate
    url
    state { name type color }
    assignee { id name email avatarUrl }
    creator { name email }
    team { id key name description }
    project { id name description progress targetDate }
    labels { nodes { id name color description } }
    children { nodes { id identifier title state { name } } }
    parent { id identifier title }
    attachments { nodes { id title url subtitle } }
    comments { nodes { id body createdAt user { name email } } }
    history {
      nodes {
        id
        createdAt
        actor { name }
        fromState { name }
        toState { name }
      }
    }
  }
}
"""

ISSUE_CREATE_MUTATION = """
mutation CreateIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      title
      url
      state { name }
      team { key name }
    }
  }
}
"""

ISSUE_UPDATE_MUTATION = """
mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue {
      id
      identifier
      title
      priority
      state { name }
      assignee { name email }
      updatedAt
    }
  }
}
"""

ISSUE_DELETE_MUTATION = """
mutation DeleteIssue($id: String!) {
  issueDelete(id: $id) { success }
}
"""

ATTACHMENT_CREATE_MUTATION = """
mutation AttachmentCreate($input: AttachmentCreateInput!) {
  attachmentCreate(input: $input) {
    success
    attachment { id url title }
  }
}
"""

PROJECT_CREATE_MUTATION = """
mutation CreateProject($input: ProjectCreateInput!) {
  projectCreate(input: $input) {
    success
    project {
      id
      name
      description
      state
      url
      teams { nodes { key name } }
      lead { name email }
      createdAt
    }
  }
}
"""

PROJECT_UPDATE_MUTATION = """
mutation ProjectUpdate($id: String!, $input: ProjectUpdateInput!) {
  projectUpdate(id: $id, input: $input) {
    success
    project { id name description state updatedAt }
  }
}
"""

PROJECT_NAMES_QUERY = """
query GetProjectNames {
  projects { nodes { id name description } }
}
"""

PROJECT_UPDATE_CREATE_MUTATION = """
mutation ProjectUpdateCreate($input: ProjectUpdateCreateInput!) {
  projectUpdateCreate(input: $input) {
    success
    projectUpdate {
      id
      body
      createdAt
      user { name email }
      project { id name }
    }
  }
}
"""

PROJECT_UPDATES_QUERY = """
query GetProjectUpdates($projectId: String!, $first: Int!) {
  project(id: $projectId) {
    name
    projectUpdates(first: $first, orderBy: createdAt) {
      nodes { id body createdAt user { name email } }
    }
  }
}
"""

_ISSUE_LIST_FIELDS = """
      id
      identifier
      title
      description
      priority
      estimate
      createdAt
      updatedAt
      dueDate
      url
      state { name type }
      assignee { name email }
      creator { name email }
      team { key name }
      project { id name }
      labels { nodes { name color } }
"""


def normalize_status(status: str) -> str:
    return re.sub(r"[_\s]", "", status.lower())


def is_identifier(value: str) -> bool:
    """True for human identifiers like ENG-123."""
    return bool(IDENTIFIER_PATTERN.match(value))


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def attachment_title(url: str) -> str:
    """Last path segment of a URL, or "Attachment" when it has none."""
    name = PurePosixPath(urlparse(url).path).name
    return name or "Attachment"


def build_issues_query(
    team: Optional[str] = None,
    assignee: Optional[str] = None,
    project: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20
) -> Tuple[str, Dict[str, Any]]:
    """Build the filtered issue-list query and its variables.

    Status accepts the skill's aliases (todo, in_progress, ...) and falls
    back to the raw value as a state type.
    """
    filters = []
    variables: Dict[str, Any] = {}

    if team:
        filters.append("team: { key: { eq: $teamKey } }")
        variables["teamKey"] = team
    if assignee:
        filters.append("assignee: { email: { eq: $assigneeEmail } }")
        variables["assigneeEmail"] = assignee
    if project:
        filters.append("project: { id: { eq: $projectId } }")
        variables["projectId"] = project
    if status:
        filters.append("state: { type: { eq: $stateType } }")
        variables["stateType"] = STATUS_TYPES.get(normalize_status(status), status)
    if search:
        filters.append("searchableContent: { contains: $searchText }")
        variables["searchText"] = search

    declarations = "".join(f", ${name}: String" for name in variables)
    filter_clause = f"filter: {{ {', '.join(filters)} }}, " if filters else ""

    query = (
        f"query GetIssues($first: Int!{declarations}) {{\n"
        f"  issues(first: $first, {filter_clause}orderBy: updatedAt) {{\n"
        f"    nodes {{{_ISSUE_LIST_FIELDS}    }}\n"
        f"  }}\n"
        f"}}\n"
    )
    variables["first"] = limit
    return query, variables


class LinearClient:
    """Client for Linear's GraphQL endpoint.

    Every failure surfaces as ApiError: transport errors, non-2xx answers,
    unparsable bodies and GraphQL `errors`.
    """

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_LINEAR_API_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None
    ):
        if not api_key:
            raise ValueError("api_key is required and cannot be empty")
        self.url = url
        self._http = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Authorization": api_key, "Content-Type": "application/json"},
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "LinearClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL query and return its `data` object."""
        try:
            response = self._http.post(self.url, json={"query": query, "variables": variables or {}})
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}")

        try:
            payload = response.json()
        except ValueError as e:
            if not response.is_success:
                raise ApiError(
                    f"HTTP {response.status_code}: {response.text}",
                    status_code=response.status_code,
                    body=response.text,
                )
            raise ApiError(f"Failed to parse response: {e}", body=response.text)

        if payload.get("errors"):
            messages = ", ".join(str(error.get("message", error)) for error in payload["errors"])
            raise ApiError(
                f"GraphQL Error: {messages}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.is_success:
            raise ApiError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        return payload.get("data") or {}

    def _mutate(self, mutation: str, field: str, variables: Dict[str, Any], failure: str) -> Dict[str, Any]:
        result = self.request(mutation, variables)[field]
        if not result.get("success"):
            raise ApiError(failure)
        return result

    # Teams and states

    def get_teams(self) -> List[Dict[str, Any]]:
        return self.request(TEAMS_QUERY)["teams"]["nodes"]

    def find_team(self, key: str) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
        """Find a team by key, case-insensitively.

        Returns:
            (team or None, all teams) so callers can list the alternatives
        """
        teams = self.get_teams()
        for team in teams:
            if team["key"].lower() == key.lower():
                return team, teams
        return None, teams

    def get_team_states(self, team_id: str) -> List[Dict[str, Any]]:
        data = self.request(TEAM_STATES_QUERY, {"teamId": team_id})
        return data["team"]["states"]["nodes"]

    def get_workflow_state_id(self, team_id: str, status: str) -> Optional[str]:
        """Resolve a status alias or state name to a workflow state id."""
        normalized = normalize_status(status)
        target_type = STATUS_TYPES.get(normalized)

        for state in self.get_team_states(team_id):
            if state["type"] == target_type or normalize_status(state["name"]) == normalized:
                return state["id"]
        return None

    # Users

    def get_user_id(self, email: str) -> Optional[str]:
        for user in self.request(USERS_QUERY)["users"]["nodes"]:
            if (user.get("email") or "").lower() == email.lower():
                return user["id"]
        return None

    def get_viewer(self) -> Dict[str, Any]:
        return self.request(VIEWER_QUERY)["viewer"]

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self.request(USERS_DETAIL_QUERY)["users"]["nodes"]:
            if (user.get("email") or "").lower() == email.lower():
                return user
        return None

    # Issues

    def list_issues(self, **filters: Any) -> List[Dict[str, Any]]:
        query, variables = build_issues_query(**filters)
        return self.request(query, variables)["issues"]["nodes"]

    def get_issue(self, issue_id: str) -> Optional[Dict[str, Any]]:
        """Fetch an issue; `issue(id:)` accepts both ENG-123 and UUIDs."""
        logger.debug(
            "Fetching issue by %s: %s", "identifier" if is_identifier(issue_id) else "id", issue_id
        )
        return self.request(ISSUE_DETAIL_QUERY, {"id": issue_id}).get("issue")

    def create_issue(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._mutate(
            ISSUE_CREATE_MUTATION, "issueCreate", {"input": input_data}, "Failed to create issue"
        )
        return result["issue"]

    def update_issue(self, issue_id: str, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._mutate(
            ISSUE_UPDATE_MUTATION, "issueUpdate",
            {"id": issue_id, "input": input_data}, "Failed to update issue"
        )
        return result["issue"]

    def delete_issue(self, issue_id: str) -> None:
        self._mutate(ISSUE_DELETE_MUTATION, "issueDelete", {"id": issue_id}, "Failed to delete issue")

    def create_attachment(self, issue_id: str, title: str, url: str) -> str:
        """Create an attachment record pointing at an external URL.

        Linear has no direct file upload; the file must already be hosted.
        Image URLs double as the attachment icon.

        Returns:
            The attachment id
        """
        input_data = {"issueId": issue_id, "title": title, "url": url}
        if Path(title).suffix.lower() in ICON_EXTENSIONS:
            input_data["iconUrl"] = url

        try:
            result = self._mutate(
                ATTACHMENT_CREATE_MUTATION, "attachmentCreate",
                {"input": input_data}, "Failed to create attachment"
            )
        except ApiError as e:
            raise ApiError(f"Attachment creation failed: {e}", e.status_code, e.body)
        return result["attachment"]["id"]

    def attach_urls(self, issue_id: str, urls: List[str]) -> List[str]:
        """Create one attachment per URL, reporting each step.

        Failures do not stop the remaining URLs and earlier attachments are
        kept.

        Returns:
            One result line per URL
        """
        results = []
        for url in urls:
            title = attachment_title(url)
            logger.info("Creating attachment for %s...", url)
            try:
                attachment_id = self.create_attachment(issue_id, title, url)
            except ApiError as e:
                logger.error("Failed to create attachment for %s: %s", url, e)
                results.append(f"❌ Failed: {title} - {e}")
                continue
            logger.info("Created attachment: %s (%s)", title, attachment_id)
            results.append(f"✅ Created attachment: {title}")
        return results

    # Projects

    def list_projects(self, team_key: Optional[str] = None) -> Optional[List[Dict[str, Any]]]:
        """List projects, optionally for one team; None if the team is unknown."""
        if team_key:
            team = self.request(TEAM_PROJECTS_QUERY, {"teamKey": team_key}).get("team")
            if not team:
                return None
            return team["projects"]["nodes"]
        return self.request(PROJECTS_QUERY)["projects"]["nodes"]

    def find_project_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        for project in self.request(PROJECT_NAMES_QUERY)["projects"]["nodes"]:
            if project["name"].lower() == name.lower():
                return project
        return None

    def create_project(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._mutate(
            PROJECT_CREATE_MUTATION, "projectCreate", {"input": input_data}, "Failed to create project"
        )
        return result["project"]

    def update_project(self, project_id: str, input_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._mutate(
            PROJECT_UPDATE_MUTATION, "projectUpdate",
            {"id": project_id, "input": input_data}, "Failed to update project"
        )
        return result["project"]

    def create_project_update(self, project_id: str, body: str) -> Dict[str, Any]:
        result = self._mutate(
            PROJECT_UPDATE_CREATE_MUTATION, "projectUpdateCreate",
            {"input": {"projectId": project_id, "body": body}},
            "Failed to create project update"
        )
        return result["projectUpdate"]

    def get_project_updates(self, project_id: str, limit: int = 10) -> Optional[Dict[str, Any]]:
        data = self.request(PROJECT_UPDATES_QUERY, {"projectId": project_id, "first": limit})
        return data.get("project")


def embed_local_images(
    attachments: List[str],
    target_kb: int = DEFAULT_TARGET_KB
) -> Tuple[str, List[str]]:
    """Turn local image attachments into inline markdown images.

    URLs pass through untouched. Missing files are reported and dropped.
    Images that fail to embed and non-image files are returned as remaining
    so the caller can report them.

    Returns:
        (markdown to append to a description, remaining attachments)
    """
    parts = []
    remaining = []

    for attachment in attachments:
        if is_url(attachment):
            remaining.append(attachment)
            continue

        path = Path(attachment)
        if not path.exists():
            logger.error("File not found: %s", path.name)
            continue

        if path.suffix.lower() not in EMBEDDABLE_EXTENSIONS:
            remaining.append(attachment)
            continue

        logger.info("Embedding image: %s...", path.name)
        try:
            data_uri = image_to_data_uri(path, target_kb)
        except Exception as e:
            logger.error("Failed to embed %s: %s", path.name, e)
            remaining.append(attachment)
            continue
        parts.append(f"![{path.name}]({data_uri})")
        logger.info("Embedded image: %s", path.name)

    markdown = "\n\n" + "\n\n".join(parts) if parts else ""
    return markdown, remaining
