#!/usr/bin/env python3
"""
Command-line client for a running Taskory service.
"""
import os
import sys
import json
from typing import Optional, Dict, Any, List

import click
import httpx


def get_service_url() -> str:
    """Get service URL from environment or default."""
    return os.getenv("TASKORY_URL", "http://localhost:8000/api")


def get_api_token() -> Optional[str]:
    """Get API token from environment."""
    return os.getenv("TASKORY_TOKEN")


def make_request(
    method: str,
    endpoint: str,
    api_token: Optional[str] = None,
    base_url: Optional[str] = None,
    **kwargs
) -> httpx.Response:
    """Make an HTTP request to the service and return the response."""
    base_url = base_url or get_service_url()
    url = f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    headers = kwargs.pop("headers", {})
    if api_token:
        headers["Authorization"] = f"Bearer {api_token}"

    with httpx.Client(timeout=30.0) as client:
        return client.request(method.upper(), url, headers=headers, **kwargs)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or "Unknown error"
    if isinstance(data, dict):
        detail = data.get("detail")
        if isinstance(detail, dict):
            return detail.get("message", "Unknown error")
        return data.get("message") or detail or "Unknown error"
    return "Unknown error"


def call(ctx, method: str, endpoint: str, **kwargs) -> Any:
    """
    Perform a request and return the envelope's data, exiting on failure.
    """
    try:
        response = make_request(
            method,
            endpoint,
            api_token=ctx.obj['api_token'],
            base_url=ctx.obj['url'],
            **kwargs
        )
    except httpx.RequestError as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)

    if response.status_code >= 400:
        click.echo(f"Error {response.status_code}: {_error_message(response)}", err=True)
        sys.exit(1)
    if not response.content:
        return None
    body = response.json()
    return body.get("data") if isinstance(body, dict) and "data" in body else body


def format_json(data: Any) -> str:
    """Format data as JSON."""
    return json.dumps(data, indent=2, default=str)


def format_feed_item(item: Dict[str, Any]) -> str:
    user = (item.get("user") or {}).get("name", "system")
    return f"[{item['created_at']}] {user}: {item['content']}"


@click.group()
@click.option('--url', envvar='TASKORY_URL', default=None,
              help='Service API URL (default: http://localhost:8000/api)')
@click.option('--token', 'api_token', envvar='TASKORY_TOKEN', default=None,
              help='API token for authentication')
@click.pass_context
def cli(ctx, url, api_token):
    """Taskory client for tasks, feeds and invitations."""
    ctx.ensure_object(dict)
    ctx.obj['url'] = url or get_service_url()
    ctx.obj['api_token'] = api_token or get_api_token()


@cli.command()
@click.argument('task_id', type=int)
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']),
              default='text', help='Output format')
@click.pass_context
def feed(ctx, task_id, output_format):
    """Show the activity feed of a task, oldest first."""
    items = call(ctx, 'GET', f'/tasks/{task_id}/comments')
    if output_format == 'json':
        click.echo(format_json(items))
        return
    if not items:
        click.echo("No activity yet.")
        return
    for item in items:
        click.echo(format_feed_item(item))


@cli.command('project-activity')
@click.argument('project_id', type=int)
@click.option('--page', type=int, default=1, help='Page number (50 entries per page)')
@click.pass_context
def project_activity(ctx, project_id, page):
    """Show a project's audit trail, newest first."""
    result = call(ctx, 'GET', f'/projects/{project_id}/activity', params={'page': page})
    for activity in result['data']:
        user = (activity.get('user') or {}).get('name', 'system')
        task = (activity.get('task') or {}).get('title', '?')
        click.echo(f"[{activity['created_at']}] {user} {activity['action']} on \"{task}\"")
    click.echo(f"Page {result['current_page']} of {result['last_page']} ({result['total']} entries)")


@cli.command()
@click.argument('assignments', nargs=-1, required=True)
@click.pass_context
def reorder(ctx, assignments):
    """
    Set task positions. ASSIGNMENTS are TASK_ID=POSITION pairs.
    """
    tasks: List[Dict[str, int]] = []
    for assignment in assignments:
        try:
            task_id, position = assignment.split('=', 1)
            tasks.append({'id': int(task_id), 'position': int(position)})
        except ValueError:
            raise click.BadParameter(f"expected TASK_ID=POSITION, got '{assignment}'")
    call(ctx, 'POST', '/tasks/reorder', json={'tasks': tasks})
    click.echo(f"Reordered {len(tasks)} task(s).")


@cli.command()
@click.argument('organization_id', type=int)
@click.argument('email')
@click.option('--project-id', type=int, default=None, help='Project to join on acceptance')
@click.pass_context
def invite(ctx, organization_id, email, project_id):
    """Invite EMAIL to an organization."""
    data = {'email': email}
    if project_id is not None:
        data['project_id'] = project_id
    result = call(ctx, 'POST', f'/organizations/{organization_id}/invite', json=data)
    if result and 'token' in result:
        click.echo(f"Invitation sent to {result['email']}.")
    else:
        click.echo(f"{email} added to project {project_id}.")


@cli.command()
@click.argument('token')
@click.pass_context
def accept(ctx, token):
    """Accept an invitation TOKEN."""
    organization = call(ctx, 'POST', '/invitations/accept', json={'token': token})
    click.echo(f"Joined {organization['name']}.")


@cli.command('update-task')
@click.argument('task_id', type=int)
@click.option('--title', help='New title')
@click.option('--status-id', type=int, help='New status ID')
@click.option('--assignee-id', type=int, help='New assignee user ID')
@click.option('--unassign', is_flag=True, help='Remove the assignee')
@click.option('--priority', type=click.Choice(['low', 'medium', 'high']), help='New priority')
@click.option('--due-date', help='New due date (YYYY-MM-DD)')
@click.option('--estimated-hours', type=float, help='Estimated hours')
@click.option('--actual-hours', type=float, help='Actual hours')
@click.pass_context
def update_task(ctx, task_id, title, status_id, assignee_id, unassign, priority, due_date,
                estimated_hours, actual_hours):
    """Update fields of a task."""
    data = {
        key: value for key, value in {
            'title': title,
            'status_id': status_id,
            'assignee_id': assignee_id,
            'priority': priority,
            'due_date': due_date,
            'estimated_hours': estimated_hours,
            'actual_hours': actual_hours,
        }.items() if value is not None
    }
    if unassign:
        data['assignee_id'] = None
    if not data:
        raise click.UsageError("Nothing to update.")
    task = call(ctx, 'PATCH', f'/tasks/{task_id}', json=data)
    click.echo(f"Task #{task['id']} updated.")


@cli.command()
@click.argument('task_id', type=int)
@click.option('--message', '-m', 'content', default='', help='Comment text')
@click.option('--file', 'paths', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='File to attach (repeatable)')
@click.pass_context
def comment(ctx, task_id, content, paths):
    """Post a comment on a task."""
    if not content and not paths:
        raise click.UsageError("Provide --message or at least one --file.")

    handles = [open(path, 'rb') for path in paths]
    try:
        files = [('files', (os.path.basename(path), handle)) for path, handle in zip(paths, handles)]
        result = call(ctx, 'POST', f'/tasks/{task_id}/comments',
                      data={'content': content}, files=files or None)
    finally:
        for handle in handles:
            handle.close()
    click.echo(f"Comment #{result['id']} posted.")


if __name__ == '__main__':
    cli()
