"""Command line entry point for the personal info service."""

import os

import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.text import Text

from personal_info.core.logger import setup_logger
from personal_info.core.settings import settings
from personal_info.db.models import Base
from personal_info.db.session import check_database_connection, get_engine, get_session
from personal_info.persistence.store import PersonStore

console = Console()

app = typer.Typer(
    name="personal-info",
    help="Personal info record manager",
    add_completion=False,
)

DEFAULT_HOST = os.getenv("SERVER_HOST", "127.0.0.1")


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(5098, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Run the FastAPI server."""
    logger.info(f"Starting FastAPI server on {host}:{port} (reload={reload})")
    uvicorn.run("personal_info.main:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_db() -> None:
    """Create the person table if it does not exist."""
    setup_logger(level=settings.log_level)
    check_database_connection()
    Base.metadata.create_all(bind=get_engine())
    console.print(Panel(Text("Database schema is up to date", style="bold green"), subtitle=settings.database_url))


@app.command()
def show(person_id: int = typer.Argument(..., help="Person id")) -> None:
    """Print a stored person, history fields included."""
    setup_logger(level=settings.log_level)
    with get_session() as session:
        person = PersonStore(session).find_by_id(person_id)
    if person is None:
        console.print(f"[red]Person {person_id} not found[/red]")
        raise typer.Exit(code=1)
    console.print(JSON(person.model_dump_json(by_alias=True)))


if __name__ == "__main__":
    app()
