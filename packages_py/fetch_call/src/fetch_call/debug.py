"""
Pretty-printing of requests and responses for debug calls.
"""
import json
from typing import Any, Mapping, Optional

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from .core.request_builder import mask_headers

console = Console()


def print_panel(content: str, title: Optional[str] = None) -> None:
    """Print content in a panel."""
    console.print(Panel(content, title=title))


def print_syntax_panel(
    code: str,
    lexer: str = "json",
    title: Optional[str] = None,
    theme: str = "monokai",
) -> None:
    """Print syntax-highlighted text in a panel."""
    console.print(Panel(Syntax(code, lexer, theme=theme), title=title, expand=True))


def format_body(body: Any) -> str:
    """Format body for pretty printing."""
    if body is None:
        return ""
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2, ensure_ascii=False, default=str)
    if isinstance(body, bytes):
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError:
            return f"<binary data: {len(body)} bytes>"
    return str(body)


def print_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    json_body: Any = None,
    attempt: int = 0,
) -> None:
    request_info = f"[bold cyan]{method}[/bold cyan] {url}"
    title = "[bold blue]Request[/bold blue]"
    if attempt:
        title += f" (retry {attempt})"
    print_panel(request_info, title=title)
    console.print("[bold]Headers:[/bold]", mask_headers(headers))
    if json_body is not None:
        print_syntax_panel(format_body(json_body), lexer="json", title="[bold]Request Body[/bold]")


def print_response(url: str, response: Any, data: Any = None) -> None:
    status = response.status_code
    status_color = "green" if 200 <= status < 300 else "red"
    response_info = (
        f"[bold {status_color}]{status}[/bold {status_color}] {response.reason_phrase or ''}"
    )
    print_panel(response_info, title=f"[bold blue]Response[/bold blue] ({url})")
    console.print("[bold]Headers:[/bold]", mask_headers(dict(response.headers)))
    if data is not None and isinstance(data, (dict, list, str, bytes)) and data:
        print_syntax_panel(
            format_body(data), lexer="json", title=f"[bold]Response Body[/bold] (URL: {url})"
        )


def print_failure(url: str, message: str, error: Optional[BaseException] = None) -> None:
    detail = f"[bold red]{message}[/bold red]"
    if error is not None:
        detail += f"\n{error!r}"
    print_panel(detail, title=f"[bold blue]Response[/bold blue] ({url})")
