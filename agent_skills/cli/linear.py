"""
Linear issue tracker commands.

Progress lines go to stderr so `--json` and `--csv` output stays clean on
stdout.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from agent_skills.cli.common import echo, fail, load_config, note, reported_errors
from agent_skills.clients.linear import (
    EMBEDDABLE_EXTENSIONS,
    UUID_PATTERN,
    VALID_STATUSES,
    LinearClient,
    embed_local_images,
    is_url,
)
from agent_skills.config.loader import require_env
from agent_skills.core.formatting import (
    PRIORITY_VALUES,
    format_date,
    format_priority,
    parse_priority,
    to_csv,
    to_json,
)

API_KEY_HINT = "Get your API key from: https://linear.app/settings/api"
VALID_PRIORITIES = "urgent, high, medium, low, none"

PROJECT_STATE_EMOJI = {
    "planned": "📋",
    "started": "🚀",
    "paused": "⏸️",
    "completed": "✅",
    "canceled": "❌",
}
ISSUE_STATE_EMOJI = {
    "backlog": "📋",
    "unstarted": "⏳",
    "started": "🚀",
    "completed": "✅",
    "canceled": "❌",
}
PRIORITY_EMOJI = {1: "🔥", 2: "📍", 3: "📌", 4: "📎", 0: "⚪"}

app = typer.Typer(help="Manage Linear issues, projects and teams.")


def get_client() -> LinearClient:
    """Client configured from LINEAR_API_KEY and the settings file."""
    config = load_config()
    api_key = require_env("LINEAR_API_KEY", API_KEY_HINT)
    return LinearClient(api_key, url=config.linear_api_url, timeout=config.http_timeout)


def _team_not_found(key: str, teams: List[Dict[str, Any]]) -> None:
    available = "\n".join(f"  {team['key']} - {team['name']}" for team in teams)
    fail(f"Team '{key}' not found\nAvailable teams:\n{available}")


def _split_attachments(attachments: List[str]) -> tuple:
    """Embed local images; return (markdown, URLs to attach afterwards)."""
    if not attachments:
        return "", []
    target_kb = load_config().embed_target_kb
    markdown, remaining = embed_local_images(attachments, target_kb)
    urls = []
    for attachment in remaining:
        if is_url(attachment):
            urls.append(attachment)
        elif Path(attachment).suffix.lower() in EMBEDDABLE_EXTENSIONS:
            note(
                f"❌ Skipping {attachment}: the image could not be embedded. "
                f"Shrink it below {target_kb} KB or upload it and pass the URL."
            )
        else:
            note(
                f"❌ Skipping {attachment}: only images can be embedded. "
                "Upload other files to an external service and pass the URL."
            )
    return markdown, urls


@app.callback()
def main():
    """Linear via its GraphQL API. Requires LINEAR_API_KEY."""


# Teams and users

@app.command()
def teams(json_output: bool = typer.Option(False, "--json", help="Output as JSON")):
    """List teams."""
    with reported_errors():
        with get_client() as client:
            team_list = client.get_teams()

    if json_output:
        echo(to_json(team_list))
        return

    echo(f"Found {len(team_list)} teams:")
    echo("")
    for team in team_list:
        echo(f"📋 {team['key']} - {team['name']}")
        if team.get("description"):
            echo(f"   {team['description']}")
        echo(f"   Private: {'Yes' if team.get('private') else 'No'}")
        if team.get("activeCycle"):
            echo(f"   Active Cycle: {team['activeCycle']['name']}")
        echo("")


@app.command()
def user(
    email: Optional[str] = typer.Argument(None, help="User email (default: you)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Show a user's profile, teams and issues."""
    with reported_errors():
        with get_client() as client:
            person = client.get_user_by_email(email) if email else client.get_viewer()
    if person is None:
        fail(f"User with email '{email}' not found")

    if json_output:
        echo(to_json(person))
        return

    echo("")
    echo(f"👤 {person.get('displayName') or person['name']}")
    if person.get("organization"):
        org = person["organization"]
        echo(f"Organization: {org['name']} ({org['urlKey']})")
    echo(f"Email: {person['email']}")

    roles = []
    if person.get("admin"):
        roles.append("Admin")
    if person.get("guest"):
        roles.append("Guest")
    if not person.get("active", True):
        roles.append("Inactive")
    if roles:
        echo(f"Roles: {', '.join(roles)}")
    if person.get("timezone"):
        echo(f"Timezone: {person['timezone']}")
    echo(f"Member since: {format_date(person.get('createdAt'))}")
    if person.get("lastSeen"):
        echo(f"Last seen: {format_date(person['lastSeen'])}")

    memberships = person["teamMemberships"]["nodes"]
    if memberships:
        echo("")
        echo("Team Memberships:")
        for membership in memberships:
            echo(f"  🏢 {membership['team']['key']} - {membership['team']['name']}")

    active = [
        issue for issue in person["assignedIssues"]["nodes"]
        if issue["state"]["name"] not in ("Done", "Canceled")
    ]
    if active:
        echo("")
        echo("Active Assigned Issues:")
        for issue in active[:10]:
            echo(f"  📋 {issue['identifier']} - {issue['title']} ({issue['state']['name']})")
        if len(active) > 10:
            echo(f"  ... and {len(active) - 10} more")

    created = person["createdIssues"]["nodes"]
    if created:
        echo("")
        echo(f"Issues Created: {len(created)} total")
        echo("Recent Issues:")
        for issue in created[:5]:
            echo(f"  📝 {issue['identifier']} - {issue['title']} ({issue['state']['name']})")
    echo("")


# Projects

@app.command()
def projects(
    team_key: Optional[str] = typer.Argument(None, help="Only this team's projects"),
    active: bool = typer.Option(False, "--active", help="Hide completed and canceled projects"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """List projects."""
    with reported_errors():
        with get_client() as client:
            project_list = client.list_projects(team_key)
    if project_list is None:
        fail(f"Team '{team_key}' not found")

    if active:
        project_list = [p for p in project_list if p.get("state") not in ("completed", "canceled")]

    if json_output:
        echo(to_json(project_list))
        return

    team_filter = f" for team {team_key}" if team_key else ""
    active_filter = " (active only)" if active else ""
    echo(f"Found {len(project_list)} projects{team_filter}{active_filter}:")
    echo("")
    for project in project_list:
        echo(f"{PROJECT_STATE_EMOJI.get(project.get('state'), '📋')} {project['name']}")
        if project.get("description"):
            echo(f"   {project['description']}")
        echo(f"   State: {project.get('state')} | Progress: {project.get('progress')}%")
        echo(f"   Members: {len((project.get('members') or {}).get('nodes') or [])}")
        if project.get("lead"):
            echo(f"   Lead: {project['lead']['name']} ({project['lead']['email']})")
        if project.get("targetDate"):
            echo(f"   Target Date: {format_date(project['targetDate'])}")
        project_teams = (project.get("teams") or {}).get("nodes") or []
        if not team_key and project_teams:
            echo("   Teams: " + ", ".join(f"{t['key']} ({t['name']})" for t in project_teams))
        echo(f"   Created: {format_date(project.get('createdAt'))}")
        echo("")


@app.command("create-project")
def create_project(
    name: str = typer.Option(..., "--name", help="Project name"),
    team: str = typer.Option(..., "--team", help="Team key"),
    description: Optional[str] = typer.Option(None, "--description", help="Project description"),
    lead: Optional[str] = typer.Option(None, "--lead", help="Project lead email"),
    target_date: Optional[str] = typer.Option(None, "--target-date", help="Target date (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Create a project in a team."""
    target = None
    if target_date:
        try:
            target = date.fromisoformat(target_date).isoformat()
        except ValueError:
            fail("Invalid target date format. Use YYYY-MM-DD")

    with reported_errors():
        with get_client() as client:
            found, all_teams = client.find_team(team)
            if found is None:
                _team_not_found(team, all_teams)
            note(f"Creating project in team: {found['key']} - {found['name']}")

            input_data: Dict[str, Any] = {"name": name, "teamIds": [found["id"]]}
            if description:
                input_data["description"] = description
            if lead:
                lead_id = client.get_user_id(lead)
                if lead_id is None:
                    fail(f"User with email '{lead}' not found")
                input_data["leadId"] = lead_id
            if target:
                input_data["targetDate"] = target

            project = client.create_project(input_data)

    if json_output:
        echo(to_json(project))
        return

    echo("")
    echo("✅ Project created successfully!")
    echo(f"📁 {project['name']}")
    if project.get("description"):
        echo(f"Description: {project['description']}")
    echo(f"State: {project.get('state')}")
    project_teams = (project.get("teams") or {}).get("nodes") or []
    if project_teams:
        echo("Teams: " + ", ".join(f"{t['key']} ({t['name']})" for t in project_teams))
    if project.get("lead"):
        echo(f"Lead: {project['lead']['name']} ({project['lead']['email']})")
    echo(f"Created: {format_date(project.get('createdAt'))}")
    echo(f"URL: {project.get('url')}")


@app.command("update-project")
def update_project(
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", help="New description")
):
    """Update a project's description, looking it up by name."""
    if description is None:
        fail("No updates specified. Use --description")

    with reported_errors():
        with get_client() as client:
            project = client.find_project_by_name(name)
            if project is None:
                fail(f"Project '{name}' not found")
            note(f"Updating description for: {project['name']}")
            updated = client.update_project(project["id"], {"description": description})

    echo("")
    echo("✅ Project updated successfully!")
    echo(f"📋 {updated['name']}")
    echo(f"📝 Description: {updated.get('description')}")


@app.command("project-update")
def project_update(
    project: str = typer.Argument(..., help="Project name or id"),
    message: Optional[str] = typer.Argument(None, help="Update text"),
    list_updates: bool = typer.Option(False, "--list", help="List recent updates instead"),
    limit: int = typer.Option(10, "--limit", help="Number of updates to list"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Post a status update to a project, or list recent ones."""
    if not list_updates and not message:
        fail("Update message is required")

    with reported_errors():
        with get_client() as client:
            project_id = project
            if not UUID_PATTERN.match(project):
                found = client.find_project_by_name(project)
                if found is None:
                    fail(f"Project '{project}' not found")
                project_id = found["id"]
                note(f"Found project: {found['name']} ({project_id})")

            if list_updates:
                data = client.get_project_updates(project_id, limit)
                if data is None:
                    fail(f"Project '{project}' not found")
            else:
                note("Creating project update...")
                update = client.create_project_update(project_id, message)

    if list_updates:
        updates = data["projectUpdates"]["nodes"]
        if json_output:
            echo(to_json(updates))
            return
        echo("")
        echo(f"📋 Recent updates for: {data['name']}")
        echo("")
        if not updates:
            echo("No updates found")
            return
        for entry in updates:
            author = (entry.get("user") or {}).get("name", "Unknown")
            echo(f"📄 {format_date(entry['createdAt'])} - {author}")
            echo(f"   {entry['body']}")
            echo("")
        return

    if json_output:
        echo(to_json(update))
        return
    echo("")
    echo("✅ Project update created successfully!")
    echo(f"📋 Project: {update['project']['name']}")
    echo(f"👤 Author: {update['user']['name']} ({update['user']['email']})")
    echo(f"📅 Created: {format_date(update['createdAt'])}")
    echo(f"💬 Update: {update['body']}")


# Issues

@app.command()
def issues(
    team: Optional[str] = typer.Option(None, "--team", help="Team key"),
    status: Optional[str] = typer.Option(None, "--status", help=VALID_STATUSES),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Assignee email"),
    project: Optional[str] = typer.Option(None, "--project", help="Project id"),
    search: Optional[str] = typer.Option(None, "--search", help="Text search"),
    limit: int = typer.Option(20, "--limit", help="Maximum number of issues"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    csv_output: bool = typer.Option(False, "--csv", help="Output as CSV")
):
    """List issues, most recently updated first."""
    with reported_errors():
        with get_client() as client:
            issue_list = client.list_issues(
                team=team,
                assignee=assignee,
                project=project,
                status=status,
                search=search,
                limit=limit,
            )

    if json_output:
        echo(to_json(issue_list))
        return

    if csv_output:
        rows = [
            {
                "identifier": issue["identifier"],
                "title": issue["title"],
                "status": issue["state"]["name"],
                "priority": format_priority(issue.get("priority")),
                "assignee": (issue.get("assignee") or {}).get("email") or "Unassigned",
                "team": issue["team"]["key"],
                "project": (issue.get("project") or {}).get("name") or "No Project",
                "created": format_date(issue.get("createdAt")),
                "updated": format_date(issue.get("updatedAt")),
            }
            for issue in issue_list
        ]
        echo(to_csv(rows))
        return

    echo(f"Found {len(issue_list)} issues:")
    echo("")
    for issue in issue_list:
        state_emoji = ISSUE_STATE_EMOJI.get(issue["state"].get("type"), "📋")
        priority_emoji = PRIORITY_EMOJI.get(issue.get("priority"), "⚪")
        echo(f"{state_emoji} {priority_emoji} {issue['identifier']} - {issue['title']}")
        echo(f"   Team: {issue['team']['key']} ({issue['team']['name']})")
        echo(f"   Status: {issue['state']['name']} | Priority: {format_priority(issue.get('priority'))}")
        if issue.get("assignee"):
            echo(f"   Assignee: {issue['assignee']['name']} ({issue['assignee']['email']})")
        else:
            echo("   Assignee: Unassigned")
        if issue.get("project"):
            echo(f"   Project: {issue['project']['name']}")
        if issue.get("estimate"):
            echo(f"   Estimate: {issue['estimate']} points")
        if issue.get("dueDate"):
            echo(f"   Due: {format_date(issue['dueDate'])}")
        labels = (issue.get("labels") or {}).get("nodes") or []
        if labels:
            echo(f"   Labels: {', '.join(label['name'] for label in labels)}")
        echo(f"   Updated: {format_date(issue.get('updatedAt'))}")
        echo(f"   URL: {issue.get('url')}")
        echo("")


@app.command()
def issue(
    issue_id: str = typer.Argument(..., help="Issue identifier (ENG-123) or id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Show an issue with its comments and history."""
    with reported_errors():
        with get_client() as client:
            found = client.get_issue(issue_id)
    if found is None:
        fail(f"Issue '{issue_id}' not found")

    if json_output:
        echo(to_json(found))
        return
    _print_issue(found)


def _print_issue(issue: Dict[str, Any]) -> None:
    echo("")
    echo(f"📋 {issue['identifier']} - {issue['title']}")
    echo("")

    if issue.get("description"):
        echo("Description:")
        echo(issue["description"])
        echo("")

    echo("Details:")
    echo(f"  Status: {issue['state']['name']}")
    echo(f"  Priority: {format_priority(issue.get('priority'))}")
    echo(f"  Team: {issue['team']['key']} ({issue['team']['name']})")
    if issue.get("assignee"):
        echo(f"  Assignee: {issue['assignee']['name']} ({issue['assignee']['email']})")
    else:
        echo("  Assignee: Unassigned")
    if issue.get("creator"):
        echo(f"  Creator: {issue['creator']['name']} ({issue['creator']['email']})")
    if issue.get("project"):
        project = issue["project"]
        echo(f"  Project: {project['name']} ({project.get('progress')}% complete)")
        if project.get("targetDate"):
            echo(f"  Project Target: {format_date(project['targetDate'])}")
    if issue.get("estimate"):
        echo(f"  Estimate: {issue['estimate']} points")
    if issue.get("dueDate"):
        echo(f"  Due Date: {format_date(issue['dueDate'])}")
    echo(f"  Created: {format_date(issue.get('createdAt'))}")
    echo(f"  Updated: {format_date(issue.get('updatedAt'))}")
    if issue.get("completedAt"):
        echo(f"  Completed: {format_date(issue['completedAt'])}")
    if issue.get("canceledAt"):
        echo(f"  Canceled: {format_date(issue['canceledAt'])}")
    echo(f"  URL: {issue.get('url')}")

    labels = (issue.get("labels") or {}).get("nodes") or []
    if labels:
        echo("")
        echo("Labels:")
        for label in labels:
            suffix = f" - {label['description']}" if label.get("description") else ""
            echo(f"  🏷️  {label['name']}{suffix}")

    if issue.get("parent"):
        echo("")
        echo("Parent Issue:")
        echo(f"  ⬆️  {issue['parent']['identifier']} - {issue['parent']['title']}")

    children = (issue.get("children") or {}).get("nodes") or []
    if children:
        echo("")
        echo("Child Issues:")
        for child in children:
            echo(f"  ⬇️  {child['identifier']} - {child['title']} ({child['state']['name']})")

    attachments = (issue.get("attachments") or {}).get("nodes") or []
    if attachments:
        echo("")
        echo("Attachments:")
        for attachment in attachments:
            echo(f"  📎 {attachment['title']}")
            if attachment.get("subtitle"):
                echo(f"     {attachment['subtitle']}")
            echo(f"     {attachment['url']}")

    comments = (issue.get("comments") or {}).get("nodes") or []
    if comments:
        echo("")
        echo("Comments:")
        for comment in comments[:5]:
            author = (comment.get("user") or {}).get("name", "Unknown")
            echo("")
            echo(f"💬 {author} - {format_date(comment.get('createdAt'))}")
            echo(f"   {comment['body']}")
        if len(comments) > 5:
            echo("")
            echo(f"   ... and {len(comments) - 5} more comments")

    history = (issue.get("history") or {}).get("nodes") or []
    if history:
        echo("")
        echo("Recent History:")
        for entry in history[:10]:
            actor = (entry.get("actor") or {}).get("name") or "System"
            when = format_date(entry.get("createdAt"))
            if entry.get("fromState") and entry.get("toState"):
                echo(f"  📈 {actor} moved from {entry['fromState']['name']} to {entry['toState']['name']} - {when}")
            else:
                echo(f"  ✏️  {actor} updated the issue - {when}")


def _prompt_issue(client: LinearClient) -> Dict[str, Any]:
    """Ask for team, title, description, priority and assignee."""
    echo("🚀 Creating a new Linear issue")
    echo("")
    team_list = client.get_teams()
    echo("Available teams:")
    for number, team in enumerate(team_list, start=1):
        echo(f"  {number}. {team['key']} - {team['name']}")

    choice = typer.prompt("\nSelect team (number or key)", default="", show_default=False).strip()
    selected = None
    if choice.isdigit():
        index = int(choice) - 1
        if 0 <= index < len(team_list):
            selected = team_list[index]
    else:
        selected = next((t for t in team_list if t["key"].lower() == choice.lower()), None)
    if selected is None:
        fail("Invalid team selection")
    echo(f"Selected team: {selected['key']} - {selected['name']}")
    echo("")

    title = typer.prompt("Issue title", default="", show_default=False).strip()
    if not title:
        fail("Title is required")
    description = typer.prompt("Description (optional)", default="", show_default=False)
    priority = typer.prompt(
        "Priority (urgent/high/medium/low/none, default: none)", default="", show_default=False
    )
    assignee = typer.prompt("Assignee email (optional)", default="", show_default=False).strip()

    return {
        "team": selected,
        "title": title,
        "description": description or None,
        "priority": PRIORITY_VALUES.get(priority.strip().lower(), 0),
        "assignee": assignee or None,
    }


@app.command("create-issue")
def create_issue(
    title: Optional[str] = typer.Option(None, "--title", help="Issue title"),
    team: Optional[str] = typer.Option(None, "--team", help="Team key"),
    description: Optional[str] = typer.Option(None, "--description", help="Issue description"),
    priority: Optional[str] = typer.Option(None, "--priority", help=VALID_PRIORITIES),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Assignee email"),
    attachment: Optional[List[str]] = typer.Option(
        None,
        "--attachment",
        help="Local image to embed or URL to attach (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Create an issue; prompts for the details when --title or --team is missing."""
    with reported_errors():
        with get_client() as client:
            if title and team:
                found, all_teams = client.find_team(team)
                if found is None:
                    _team_not_found(team, all_teams)
                data = {
                    "team": found,
                    "title": title,
                    "description": description,
                    "priority": PRIORITY_VALUES.get(priority.lower(), 0) if priority else 0,
                    "assignee": assignee,
                }
            else:
                data = _prompt_issue(client)

            assignee_id = None
            if data["assignee"]:
                assignee_id = client.get_user_id(data["assignee"])
                if assignee_id is None:
                    fail(f"User with email '{data['assignee']}' not found")

            markdown, urls = _split_attachments(attachment or [])
            full_description = (data["description"] or "") + markdown

            states = client.get_team_states(data["team"]["id"])
            default_state = next((s for s in states if s["type"] == "unstarted"), states[0] if states else None)

            input_data: Dict[str, Any] = {
                "title": data["title"],
                "teamId": data["team"]["id"],
                "priority": data["priority"],
            }
            if default_state is not None:
                input_data["stateId"] = default_state["id"]
            if full_description.strip():
                input_data["description"] = full_description
            if assignee_id:
                input_data["assigneeId"] = assignee_id

            note("Creating issue...")
            created = client.create_issue(input_data)
            results = client.attach_urls(created["id"], urls)

    if json_output:
        echo(to_json(created))
        return

    echo("")
    echo("✅ Issue created successfully!")
    echo(f"📋 {created['identifier']} - {created['title']}")
    echo(f"Team: {created['team']['key']} ({created['team']['name']})")
    echo(f"Status: {created['state']['name']}")
    echo(f"URL: {created['url']}")
    if results:
        echo("")
        echo("Attachments:")
        for line in results:
            echo(line)


@app.command("update-issue")
def update_issue(
    issue_id: str = typer.Argument(..., help="Issue identifier (ENG-123) or id"),
    status: Optional[str] = typer.Option(None, "--status", help=VALID_STATUSES),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Assignee email, or 'none'"),
    priority: Optional[str] = typer.Option(None, "--priority", help=VALID_PRIORITIES),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--description", help="New description"),
    attachment: Optional[List[str]] = typer.Option(
        None,
        "--attachment",
        help="Local image to embed or URL to attach (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON")
):
    """Update an issue's status, assignee, priority, title or description."""
    if all(value is None for value in (status, assignee, priority, title, description)) and not attachment:
        fail(
            "No updates specified. Use --status, --assignee, --priority, --title, "
            "--description, or --attachment"
        )

    with reported_errors():
        with get_client() as client:
            current = client.get_issue(issue_id)
            if current is None:
                fail(f"Issue '{issue_id}' not found")
            note(f"Updating issue {current['identifier']} - {current['title']}")

            updates: Dict[str, Any] = {}
            if status is not None:
                state_id = client.get_workflow_state_id(current["team"]["id"], status)
                if state_id is None:
                    fail(
                        f"Invalid status '{status}' for team {current['team']['key']}\n"
                        f"Valid statuses: {VALID_STATUSES}"
                    )
                updates["stateId"] = state_id
                note(f"🔄 Setting status to: {status}")

            if assignee is not None:
                if assignee.lower() in ("none", "unassigned", ""):
                    updates["assigneeId"] = None
                    note("👤 Removing assignee")
                else:
                    assignee_id = client.get_user_id(assignee)
                    if assignee_id is None:
                        fail(f"User with email '{assignee}' not found")
                    updates["assigneeId"] = assignee_id
                    note(f"👤 Assigning to: {assignee}")

            if priority is not None:
                value = parse_priority(priority)
                if value is None:
                    fail(f"Invalid priority '{priority}'\nValid priorities: {VALID_PRIORITIES}")
                updates["priority"] = value
                note(f"📍 Setting priority to: {priority}")

            if title is not None:
                updates["title"] = title
                note(f"📝 Updating title to: {title}")

            if description is not None:
                updates["description"] = description
                note("📄 Updating description")

            markdown, urls = _split_attachments(attachment or [])
            if attachment:
                note(f"📎 Adding {len(attachment)} attachment(s)")
            if markdown:
                if description is None:
                    base = current.get("description") or ""
                    note(f"📄 Preserving existing description ({len(base)} chars)")
                else:
                    base = description
                updates["description"] = base + markdown

            note("Applying updates...")
            updated = current
            if updates:
                updated = client.update_issue(current["id"], updates)
            results = client.attach_urls(current["id"], urls)

    if json_output:
        echo(to_json(updated))
        return

    echo("")
    echo("✅ Issue updated successfully!")
    echo(f"📋 {updated['identifier']} - {updated['title']}")
    echo(f"Status: {updated['state']['name']}")
    if updated.get("assignee"):
        echo(f"Assignee: {updated['assignee']['name']} ({updated['assignee']['email']})")
    else:
        echo("Assignee: Unassigned")
    echo(f"Priority: {format_priority(updated.get('priority'))}")
    echo(f"Updated: {format_date(updated.get('updatedAt'))}")
    if results:
        echo("")
        echo("Attachments:")
        for line in results:
            echo(line)


@app.command("delete-issue")
def delete_issue(issue_id: str = typer.Argument(..., help="Issue identifier (ENG-123) or id")):
    """Move an issue to the trash."""
    with reported_errors():
        with get_client() as client:
            note(f"🗑️  Deleting issue {issue_id}...")
            client.delete_issue(issue_id)
    echo(f"✅ Issue {issue_id} deleted successfully")
    echo("⚠️  Note: Issue moved to trash and can be restored from Linear web interface if needed.")
