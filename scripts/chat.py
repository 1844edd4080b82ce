#!/usr/bin/env python3
"""Interactive CLI that feeds conversation exchanges to the ContextDojo API."""

import asyncio
import sys

import httpx

API_BASE = "http://localhost:8000"

HELP_TEXT = """
ContextDojo Topic Map
=====================

Type what the user said, then what the agent answered.
The topic map is updated after each exchange.

Commands:
  /graph          - Show the topic tree
  /select <id>    - Highlight the path from a node to the root
  /clear          - Clear the selection
  /help           - Show this help
  /quit           - Exit
"""


def render_tree(data: dict) -> str:
    """Render the graph payload as an indented tree."""
    nodes = {n["id"]: n for n in data["nodes"]}
    children: dict[str, list[str]] = {}
    for link in data["links"]:
        children.setdefault(link["source"], []).append(link["target"])

    highlighted = set(data.get("highlighted", []))
    lines: list[str] = []
    visited: set[str] = set()

    def walk(node_id: str, indent: int) -> None:
        if node_id in visited or node_id not in nodes:
            return
        visited.add(node_id)
        node = nodes[node_id]
        marker = "*" if node_id in highlighted else " "
        status = "" if node["status"] == "active" else " (potential)"
        lines.append(f"{marker} {'  ' * indent}{node['label']} [{node['type']}]{status}")
        for child in children.get(node_id, []):
            walk(child, indent + 1)

    root_id = data["nodes"][0]["id"] if data["nodes"] else None
    if root_id is not None:
        walk(root_id, 0)
    for node_id in nodes:
        walk(node_id, 0)  # Nodes the root cannot reach

    return "\n".join(lines)


class TopicMapChat:
    def __init__(self):
        self.client = httpx.AsyncClient(base_url=API_BASE, timeout=120.0)

    async def close(self):
        await self.client.aclose()

    async def exchange(self, user_text: str, agent_text: str) -> str:
        """Send one exchange and summarize what changed."""
        try:
            response = await self.client.post(
                "/graph/exchange",
                json={"user_text": user_text, "agent_text": agent_text},
            )
            response.raise_for_status()
            data = response.json()

            if not data["changed"]:
                return "[no new topics]"
            return (
                f"[v{data['version']} | added: {', '.join(data['added']) or '-'}"
                f" | promoted: {', '.join(data['promoted']) or '-'}]"
            )

        except httpx.HTTPError as e:
            return f"Error: {e}"

    async def graph(self) -> str:
        try:
            response = await self.client.get("/graph")
            response.raise_for_status()
            return render_tree(response.json())

        except httpx.HTTPError as e:
            return f"Error: {e}"

    async def select(self, node_id: str | None) -> str:
        """Select a node, or clear the selection with None."""
        try:
            response = await self.client.post("/graph/select", json={"node_id": node_id})
            if response.status_code == 404:
                return f"Unknown node: {node_id}"
            response.raise_for_status()
            data = response.json()
            if data["selected"] is None:
                return "Selection cleared."
            return f"Path: {', '.join(data['highlighted'])}"

        except httpx.HTTPError as e:
            return f"Error: {e}"


async def main():
    print(HELP_TEXT)

    chat = TopicMapChat()

    # Check connection
    try:
        await chat.client.get("/health")
        print("Connected to ContextDojo API at", API_BASE)
    except httpx.HTTPError:
        print(f"Error: Cannot connect to ContextDojo API at {API_BASE}")
        print("Make sure the API is running: python -m contextdojo.api.main")
        return

    print("-" * 50)

    try:
        while True:
            try:
                user_input = input("\nUser: ").strip()
            except EOFError:
                break

            if not user_input:
                continue

            command = user_input.lower()
            if command in ["/quit", "/exit", "/q"]:
                print("Goodbye!")
                break

            elif command == "/help":
                print(HELP_TEXT)

            elif command == "/graph":
                print(f"\n{await chat.graph()}")

            elif command.startswith("/select"):
                parts = user_input.split(maxsplit=1)
                if len(parts) < 2:
                    print("Usage: /select <node id>")
                    continue
                print(await chat.select(parts[1]))

            elif command == "/clear":
                print(await chat.select(None))

            elif user_input.startswith("/"):
                print("Unknown command. Type /help for available commands.")

            else:
                try:
                    agent_input = input("Agent: ").strip()
                except EOFError:
                    break
                print(await chat.exchange(user_input, agent_input))

    finally:
        await chat.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nGoodbye!")
        sys.exit(0)
