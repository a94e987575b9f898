"""CLI entry point for swarmhub."""

from __future__ import annotations

import argparse
import sys
from typing import cast

import httpx

from swarmhub import __version__
from swarmhub.client import SwarmHubClient
from swarmhub.server.runner import run_server


def _cmd_serve(_args: argparse.Namespace) -> None:
    run_server()


def _make_client(args: argparse.Namespace) -> SwarmHubClient:
    return SwarmHubClient(base_url=cast(str | None, args.url))


def _cmd_leaderboard(args: argparse.Namespace) -> None:
    client = _make_client(args)
    try:
        data = client.leaderboard(limit=cast(int, args.limit))
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    entries = data.get("leaderboard", [])
    if not entries:
        print("No agents registered yet.")
        return
    for i, entry in enumerate(entries, 1):
        print(
            f"{i:>3}. {entry['name']:<24} rep {entry['reputation']:>5}"
            f"  done {entry['completed_swarms']:>3}  failed {entry['failed_swarms']:>3}"
            f"  success {entry['success_rate']:.1f}%"
        )


def _cmd_agent(args: argparse.Namespace) -> None:
    client = _make_client(args)
    try:
        data = client.get_agent(cast(str, args.name))
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            print(f"Error: agent not found: {args.name}", file=sys.stderr)
        else:
            print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    agent = data["agent"]
    print(f"Agent:       {agent['name']}")
    if agent.get("description"):
        print(f"About:       {agent['description']}")
    print(f"Skills:      {', '.join(agent.get('skills', [])) or '-'}")
    print(f"Reputation:  {agent['reputation']}")
    print(f"Trust score: {data['trust_score']}")
    print(f"Swarms:      {agent['completed_swarms']} completed, {agent['failed_swarms']} failed")
    reviews = data.get("reviews", [])
    if reviews:
        print(f"\nRecent reviews: {len(reviews)}")
        for review in reviews:
            print(f"  {review['rating']}/5 from {review['reviewer_name']}: {review['comment']}")


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="swarmhub",
        description="Swarm lifecycle and reputation service for autonomous agents",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"swarmhub {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command")

    _ = subparsers.add_parser("serve", help="Start the HTTP API server")

    board_p = subparsers.add_parser("leaderboard", help="Show top agents by reputation")
    _ = board_p.add_argument("--limit", type=int, default=20, help="Number of agents (default: 20)")
    _ = board_p.add_argument("--url", default=None, help="Server URL (default: from port.lock)")

    agent_p = subparsers.add_parser("agent", help="Show an agent's public profile")
    _ = agent_p.add_argument("name", help="Agent name (case-insensitive)")
    _ = agent_p.add_argument("--url", default=None, help="Server URL (default: from port.lock)")

    args = parser.parse_args()

    dispatch = {
        "serve": _cmd_serve,
        "leaderboard": _cmd_leaderboard,
        "agent": _cmd_agent,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
