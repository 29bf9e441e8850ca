import logging
from typing import Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from flare.console import main_console as console
from flare.console import status_symbol
from flare.constants import EXIT_CODE_FAILURE, EXIT_CODE_INVALID_CONFIGURATION, EXIT_CODE_OK
from flare.context import init_context
from flare.errors import FlareError
from flare.logs_helpers import describe_exception
from flare.meta import get_version

LOG = logging.getLogger(__name__)

CLI_MAIN_INTRODUCTION = "Send telemetry events to a collector."
CLI_DEBUG_HELP = "Enable debug logging, including tracebacks of delivery errors."
CLI_DSN_HELP = "The destination, e.g. https://<key>@<host>/<project_id>."
CLI_MESSAGE_HELP = "The message of the test event."
DEFAULT_TEST_MESSAGE = "This is a test event sent by flare."

app = typer.Typer(rich_markup_mode="rich", help=CLI_MAIN_INTRODUCTION, add_completion=False)


def configure_logger(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.CRITICAL
    logging.basicConfig(format="%(asctime)s %(name)s => %(message)s", level=level)


def print_version(value: bool) -> None:
    if value:
        console.print(f"flare, version {get_version()}")
        raise typer.Exit(EXIT_CODE_OK)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            callback=print_version,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
):
    pass


@app.command("send-test-event")
def send_test_event(
    dsn: Annotated[str, typer.Option("--dsn", envvar="FLARE_DSN", help=CLI_DSN_HELP)],
    message: Annotated[str, typer.Option("--message", help=CLI_MESSAGE_HELP)] = DEFAULT_TEST_MESSAGE,
    debug: Annotated[bool, typer.Option("--debug", help=CLI_DEBUG_HELP)] = False,
):
    """
    Send one message event synchronously and report the outcome.
    """
    configure_logger(debug)

    try:
        context = init_context(
            dsn=dsn,
            debug=debug,
            background_worker_threads=0,
            send_client_reports=False,
        )
    except ValidationError as e:
        console.print(f"[failure]{status_symbol(False)} Invalid configuration[/failure]")
        console.print(str(e), style="muted", markup=False)
        raise typer.Exit(EXIT_CODE_INVALID_CONFIGURATION)

    client = context.client
    event = client.event_from_message(message, level="info")

    try:
        client.send_event(event)
    except FlareError as e:
        console.print(f"[failure]{status_symbol(False)} Sending failed[/failure]")
        console.print(e.message, style="muted", markup=False)
        raise typer.Exit(e.get_exit_code())
    except Exception as e:
        LOG.debug("Unexpected error while sending the test event", exc_info=e)
        console.print(f"[failure]{status_symbol(False)} Sending failed[/failure]")
        console.print(describe_exception(e), style="muted", markup=False)
        raise typer.Exit(EXIT_CODE_FAILURE)
    finally:
        context.close()

    console.print(
        f"{status_symbol(True)} Event {event.event_id} sent to "
        f"{context.configuration.dsn.server}",
        style="success",
        markup=False,
    )


cli = typer.main.get_command(app)
