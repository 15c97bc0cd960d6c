#!/usr/bin/env python3
"""Interactive chat CLI for trying out the gut health assistant."""

import argparse

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table


class ChatCLI:
    """Interactive chat interface for the gut health assistant."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str = "demo-user", show_tools: bool = True):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.user_id = user_id
        self.show_tools = show_tools
        self.session_id: str | None = None
        self.console = Console()
        self.client = httpx.Client(timeout=60.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]GutCheck - Dr. Gut Interactive Chat[/bold blue]\n"
                f"Chatting as user [bold]{self.user_id}[/bold].\n"
                "Commands: /help, /clear, /tools, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]Connected to GutCheck[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                    continue
                elif command == "/clear":
                    self.session_id = None
                    self.console.print("[yellow]Session cleared[/yellow]")
                    continue
                elif command == "/tools":
                    self.show_tools = not self.show_tools
                    self.console.print(f"[yellow]Tool details {'on' if self.show_tools else 'off'}[/yellow]")
                    continue
                elif command == "":
                    continue

                response = self._send_message(user_input)
                if response:
                    self._display_response(response)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    def _send_message(self, message: str) -> dict | None:
        """Send message to the chat endpoint."""
        payload = {"message": message, "user_id": self.user_id}
        if self.session_id:
            payload["session_id"] = self.session_id

        try:
            with self.console.status("[dim]Thinking...[/dim]"):
                response = self.client.post(f"{self.base_url}/chat", json=payload)
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return None

        if response.status_code == 429:
            self.console.print("[yellow]Rate limited, wait a moment before sending again.[/yellow]")
            return None
        if response.status_code != 200:
            self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
            return None

        data = response.json()
        self.session_id = data.get("session_id")
        return data

    def _display_response(self, response: dict) -> None:
        """Display the assistant's reply and, optionally, the tools it used."""
        tool_calls = response.get("tool_calls") or []
        if self.show_tools and tool_calls:
            table = Table(title="Tool calls", show_lines=False)
            table.add_column("Tool", style="magenta")
            table.add_column("Arguments")
            table.add_column("Status")
            for call in tool_calls:
                error = call.get("result", {}).get("error")
                table.add_row(
                    call.get("name", "?"),
                    str(call.get("arguments", {})),
                    f"[red]{error}[/red]" if error else "[green]ok[/green]",
                )
            self.console.print(table)

        outcome = response.get("outcome", "")
        border = "green" if outcome in ("direct", "after_tools") else "yellow"
        self.console.print(
            Panel(
                Markdown(response.get("message", "No response")),
                title=f"[bold {border}]Dr. Gut[/bold {border}]",
                subtitle=f"[dim]{outcome}[/dim]",
                border_style=border,
                padding=(1, 2),
            )
        )
        if response.get("error"):
            self.console.print(f"[dim red]error: {response['error']}[/dim red]")

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Clear session and start over
• /tools - Toggle the tool call table
• /quit or /exit - Exit the chat

[bold]Things to ask:[/bold]
1. "How has my gut health been this week?"
2. "What does research say about IBS and sleep?"
3. "Is my sleep affecting my bowel movements?"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    parser = argparse.ArgumentParser(description="Chat with the GutCheck assistant")
    parser.add_argument("base_url", nargs="?", default="http://localhost:8000")
    parser.add_argument("--user", default="demo-user", help="user id the session is scoped to")
    parser.add_argument("--hide-tools", action="store_true", help="do not print tool calls")
    args = parser.parse_args()

    chat = ChatCLI(args.base_url, user_id=args.user, show_tools=not args.hide_tools)
    chat.start()


if __name__ == "__main__":
    main()
