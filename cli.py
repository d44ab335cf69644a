# cli.py - interactive console for the catalog API
import math
import os
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from catalog_sdk.client import CatalogClient

console = Console()
c = CatalogClient(base_url=os.environ.get("CATALOG_API_URL", "http://127.0.0.1:4000"))

# Status line and autocomplete cache
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]], title: str = "📦 Products Catalog"):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", justify="right", width=6)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Slug", width=18)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Stock", justify="right", width=7)
    table.add_column("Category", width=14)
    table.add_column("Image", width=10)

    for p in products:
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name", "N/A"),
            p.get("slug", "N/A"),
            f"${float(p.get('price', 0)):.2f}",
            str(p.get("stock", 0)),
            p.get("category", "N/A"),
            "[green]yes[/green]" if p.get("imageUrl") else "[dim]-[/dim]",
        )
    console.print(table)


def show_page(result: Dict[str, Any]):
    pg = result.get("pagination", {})
    title = f"📦 Page {pg.get('page', '?')} of {max(pg.get('totalPages', 0), 1)} ({pg.get('total', 0)} products)"
    show_products(result.get("data", []), title=title)


def show_product_detail(p: Dict[str, Any]):
    lines = [
        f"[bold]{p.get('name')}[/bold]  [dim]({p.get('slug')})[/dim]",
        f"💰 [green]${float(p.get('price', 0)):.2f}[/green]   📦 stock: {p.get('stock', 0)}   🏷️ {p.get('category')}",
        "",
        p.get("description") or "[italic dim]no description[/italic dim]",
        "",
        f"🖼️  {c.base_url}{p['imageUrl']}" if p.get("imageUrl") else "🖼️  [dim]no image[/dim]",
        f"[dim]created {p.get('createdAt')}[/dim]",
    ]
    console.print(Panel("\n".join(lines), title=f"Product #{p.get('id')}", border_style="cyan"))


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def _error_text(e: Exception) -> str:
    # the API puts its message under "error"
    response = getattr(e, "response", None)
    if response is not None:
        try:
            body = response.json()
            return body.get("error") or str(body.get("detail", body))
        except ValueError:
            return f"HTTP {response.status_code}"
    return str(e)


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) under a spinner.
    Returns the decoded JSON, or None after printing the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {_error_text(e)}"
        console.print(show_status(status_message, False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_cache():
    global product_cache
    result = try_api(c.list_products, 1, 100)
    product_cache = result.get("data", []) if result else []


def get_product_completer():
    if not product_cache:
        refresh_cache()
    words = [str(p.get("id", "")) for p in product_cache] + [p.get("slug", "") for p in product_cache]
    return WordCompleter([w for w in words if w], ignore_case=True)


def get_category_completer():
    return WordCompleter(sorted({p.get("category", "") for p in product_cache if p.get("category")}), ignore_case=True)


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Catalog API",
        "[bold blue]Product catalog console[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Input helpers
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            value = float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")
            continue
        if math.isfinite(value):
            return value
        console.print("[red]Please enter a valid number.[/red]")


def ask_product_id() -> Optional[int]:
    raw = prompt_with_autocomplete("Enter product ID or slug", completer=get_product_completer()).strip()
    if raw.isdigit():
        return int(raw)
    for p in product_cache:
        if p.get("slug") == raw:
            return p["id"]
    console.print(f"[red]Unknown product '{raw}'[/red]")
    return None


def ask_image_path() -> Optional[str]:
    path = Prompt.ask("🖼️ Image file (blank for none)", default="").strip()
    if path and not os.path.isfile(path):
        console.print(f"[yellow]{path} does not exist, skipping image[/yellow]")
        return None
    return path or None


def browse(category: Optional[str] = None, search: Optional[str] = None):
    page = 1
    limit = IntPrompt.ask("Page size", default=10)
    while True:
        result = try_api(c.list_products, page, limit, category, search)
        if result is None:
            return
        show_page(result)
        total_pages = result["pagination"]["totalPages"]
        choice = Prompt.ask("[n]ext, [p]revious, [q]uit", choices=["n", "p", "q"], default="q")
        if choice == "n" and page < total_pages:
            page += 1
        elif choice == "p" and page > 1:
            page -= 1
        elif choice == "q":
            return


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message

    console.clear()
    console.print(create_header())
    refresh_cache()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 Browse products", "5", "✏️ Update product"),
            ("2", "🔍 Search / filter", "6", "🗑️ Delete product"),
            ("3", "ℹ️ Get product", "7", "💓 Health check"),
            ("4", "➕ Create product", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 8)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            browse()

        elif choice == "2":
            term = prompt_with_autocomplete("Search term (blank for none)").strip()
            category = prompt_with_autocomplete("Category (blank for any)", completer=get_category_completer()).strip()
            browse(category or None, term or None)

        elif choice == "3":
            pid = ask_product_id()
            if pid is not None:
                resp = try_api(c.get_product, pid, success_msg=f"Product {pid} loaded")
                if resp:
                    show_product_detail(resp)

        elif choice == "4":
            name = prompt_with_autocomplete("Product name")
            slug = prompt_with_autocomplete("Slug")
            price = ask_float("💰 Price", default=10.0)
            category = prompt_with_autocomplete("🏷️ Category", completer=get_category_completer(), default="general")
            description = Prompt.ask("Description (blank for none)", default="")
            stock = IntPrompt.ask("📦 Stock", default=0)
            image = ask_image_path()
            resp = try_api(
                c.create_product, name, slug, price, category, description or None, stock, image,
                success_msg=f"Product '{name}' created"
            )
            if resp:
                show_product_detail(resp)
                refresh_cache()

        elif choice == "5":
            pid = ask_product_id()
            if pid is None:
                continue
            console.print("[dim]Leave a field blank to keep its current value.[/dim]")
            changes = {}
            for field in ("name", "slug", "category", "description", "price", "stock"):
                value = Prompt.ask(f"New {field}", default="").strip()
                if value:
                    changes[field] = value
            image = ask_image_path()
            resp = try_api(c.update_product, pid, image_path=image, success_msg=f"Product {pid} updated", **changes)
            if resp:
                show_product_detail(resp)
                refresh_cache()

        elif choice == "6":
            pid = ask_product_id()
            if pid is not None and Confirm.ask(f"[red]Delete product {pid}?[/red]"):
                resp = try_api(c.delete_product, pid, success_msg=f"Product {pid} deleted")
                if resp:
                    refresh_cache()

        elif choice == "7":
            resp = try_api(c.health, success_msg="Service is healthy")
            if resp:
                console.print(Panel.fit(
                    f"status: [green]{resp.get('status')}[/green]\n"
                    f"database: {'[green]up[/green]' if resp.get('db') else '[red]down[/red]'}\n"
                    f"[dim]{resp.get('timestamp')}[/dim]",
                    title="💓 Health"
                ))

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n[bold red]Unexpected error: {e}[/bold red]")
        sys.exit(1)
