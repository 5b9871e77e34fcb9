"""
Jina web search and page reader commands.
"""

import os
from typing import List, Optional

import typer

from agent_skills.cli.common import echo, load_config, reported_errors
from agent_skills.clients.jina import API_KEY_HINT, JinaClient, parse_reader_response
from agent_skills.config.loader import require_env
from agent_skills.core.formatting import indent, to_json

app = typer.Typer(help="Web search and URL-to-markdown via Jina.")


@app.callback()
def main():
    """Search the web and read pages as markdown."""


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    site: Optional[List[str]] = typer.Option(
        None,
        "--site",
        help="Restrict results to a domain (repeatable)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON")
):
    """Search the web and print the top results with their content.

    Requires JINA_API_KEY.
    """
    with reported_errors():
        api_key = require_env("JINA_API_KEY", API_KEY_HINT)
        client = JinaClient(api_key=api_key, timeout=load_config().http_timeout)
        results = client.search(query, sites=site, as_json=json_output)

    if json_output:
        echo(to_json([result.to_dict() for result in results]))
        return

    if not results:
        echo("No results found.")
        return

    for number, result in enumerate(results, start=1):
        echo(f"--- Result {number} ---")
        echo(f"Title: {result.title}")
        echo(f"URL: {result.url}")
        if result.content:
            echo("Content:")
            echo(indent(result.content))
        echo("")


@app.command()
def read(
    url: str = typer.Argument(..., help="Page or PDF URL"),
    json_output: bool = typer.Option(False, "--json", help="Output {title, url, content} as JSON"),
    timeout: int = typer.Option(30, "--timeout", help="Seconds Jina may spend rendering"),
    wait_for: Optional[str] = typer.Option(
        None,
        "--wait-for",
        help="CSS selector to wait for before extracting"
    )
):
    """Fetch a URL and print it as markdown.

    JINA_API_KEY is optional here; it raises the rate limit.
    """
    with reported_errors():
        client = JinaClient(api_key=os.environ.get("JINA_API_KEY") or None)
        text = client.read(url, as_json=json_output, timeout=timeout, wait_for=wait_for)

    if json_output:
        echo(to_json(parse_reader_response(text, url).to_dict()))
    else:
        echo(text)
