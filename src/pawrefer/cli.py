"""Command-line interface for PawRefer."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from pawrefer.auth.identity import identity_provider
from pawrefer.errors import PawReferError
from pawrefer.logging_config import configure_logging, get_logger
from pawrefer.rewards.service import RewardService
from pawrefer.storage.db import db
from pawrefer.users.service import UserService

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="pawrefer",
    help="PawRefer - pet survey, referral and rewards administration",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("make-admin")
def make_admin(
    email: Annotated[str, typer.Argument(help="Email of the account to promote")],
) -> None:
    """Give an account the admin role (stored role and custom claims)."""
    console.print(f"[bold blue]Looking for user with email {email}...[/bold blue]")

    try:
        result = UserService(db).promote_to_admin(email, identity_provider)
    except PawReferError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold green]✓[/bold green] {result.message}")
    console.print(f"  User ID: {result.user_id}")


@app.command("seed-templates")
def seed_templates() -> None:
    """Create the default reward templates that are missing."""
    added = RewardService(db).seed_default_templates()

    if not added:
        console.print("[yellow]All default reward templates already exist[/yellow]")
        return

    for template in added:
        console.print(
            f"[bold green]✓[/bold green] {template.name} "
            f"({template.points_required} points)"
        )
    console.print(f"Added {len(added)} reward templates")


@app.command("users")
def list_users(
    limit: Annotated[int | None, typer.Option("--limit", "-l", help="Limit number of users")] = None,
) -> None:
    """List users with their referral and reward counters."""
    users = UserService(db).list_users(limit=limit)

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Email", style="green")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Referrals", justify="right")
    table.add_column("Claimed", justify="right")
    table.add_column("Created At")

    for user in users:
        table.add_row(
            user.id,
            user.email or "",
            user.display_name or "",
            user.role,
            str(user.referral_count),
            str(user.rewards_claimed),
            user.created_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option(help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port")] = 8000,
    reload: Annotated[bool, typer.Option(help="Reload on code changes")] = False,
) -> None:
    """Run the API with uvicorn."""
    import uvicorn

    console.print(f"[bold blue]Serving PawRefer on http://{host}:{port}[/bold blue]")
    uvicorn.run("pawrefer.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
