"""Server commands: run it, probe it, point it at a project."""
import click

from ..api_client import APIError
from ..config import get_config
from ..connection import Connection
from ..errors import PortUnavailableError
from ..server import run_server

DEFAULT_URL = "http://localhost:1024"


@click.command("serve")
@click.argument("port", type=int, required=False)
def serve(port):
    """Run the server (PORT overrides the configured candidates)."""
    try:
        run_server(port=port, config=get_config())
    except PortUnavailableError as e:
        click.echo(f"Port busy: {e}", err=True)
        raise SystemExit(1)


@click.command("status")
@click.option('--url', default=DEFAULT_URL, show_default=True, help='Server base URL')
def status(url):
    """Check whether a liveserve instance answers at URL."""
    info = Connection(url).check()
    if info is None:
        click.echo(f"No liveserve at {url}")
        raise SystemExit(1)
    click.echo(f"{info.message}: liveserve on port {info.port}")


@click.command("setup")
@click.argument("path", type=click.Path(file_okay=False, resolve_path=True))
@click.argument("file_name")
@click.option('--eruda', is_flag=True, help='Inject a developer console')
@click.option('--console-type', default=None, help="Console kind ('eruda' or 'suger')")
@click.option('--zoom', is_flag=True, help='Inject the pinch-zoom handler')
@click.option('--url', default=DEFAULT_URL, show_default=True, help='Server base URL')
def setup(path, file_name, eruda, console_type, zoom, url):
    """Serve FILE_NAME from PATH on a running server."""
    try:
        Connection(url).setup(path, file_name, eruda=eruda, console_type=console_type, zoom=zoom)
    except APIError as e:
        click.echo(f"Setup failed: {e.detail}", err=True)
        raise click.Abort()
    click.echo(f"Serving {file_name} from {path}")
