"""
Command-line interface for the printer bridge.

This module provides the CLI using Click, supporting configuration via:
1. Environment variables (highest precedence)
2. CLI arguments
3. Config file
4. Default values (lowest precedence)
"""

import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

import click

from printer_bridge.core.config import (
    Config,
    DEFAULT_CONFIG_PATH,
    ENV_CONFIG_FILE,
    ENV_SERVER_ADDRESS,
    ENV_SERVER_PORT,
)
from printer_bridge.core.dispatcher import CommandName, CommandResult, Dispatcher
from printer_bridge.core.logging import get_logger, setup_logging
from printer_bridge.core.service import BridgeService
from printer_bridge.transport.serial_transport import SerialTransport

logger = get_logger()


def load_config(ctx: click.Context, cli_args: dict[str, Any]) -> Config:
    """Load the configuration, turning validation errors into usage errors."""
    try:
        config = Config.load(config_file=ctx.obj["config_file"], cli_args=cli_args)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    setup_logging(
        verbosity_level=ctx.obj["verbose"],
        quiet=ctx.obj["quiet"],
        payload_log_file=config.payload_log_file,
    )
    return config


def build_dispatcher(config: Config) -> Dispatcher:
    return Dispatcher(
        serial_transport=SerialTransport(
            chunk_size=config.serial.chunk_size,
            chunk_delay=config.chunk_delay_seconds,
        ),
    )


def run_command(dispatcher: Dispatcher, name: CommandName, args: dict[str, Any]) -> CommandResult:
    """Dispatch one command and exit with status 1 on failure."""
    result = asyncio.run(dispatcher.dispatch(name, args))
    if not result.ok:
        click.echo(f"Error: {result.error}", err=True)
        sys.exit(1)
    return result


@click.group()
@click.option(
    "-c", "--config",
    "config_file",
    type=click.Path(exists=False, path_type=Path),
    envvar=ENV_CONFIG_FILE,
    default=None,
    help=f"Path to configuration file. [default: {DEFAULT_CONFIG_PATH}] [env: {ENV_CONFIG_FILE}]",
)
@click.option(
    "-v", "--verbose",
    count=True,
    help="Increase logging verbosity (-v debug, -vv raw payload dumps).",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    default=False,
    help="Suppress all output except errors.",
)
@click.version_option(package_name="printer-bridge")
@click.pass_context
def main(ctx: click.Context, config_file: Path | None, verbose: int, quiet: bool) -> None:
    """
    Printer Bridge - Send ESC/POS receipts to network and serial printers.

    \b
    Example usage:
        # List serial ports
        printer-bridge ports

        # Print a receipt file to a network printer
        printer-bridge print-tcp 192.168.1.50 receipt.bin

        # Print to a Bluetooth SPP printer
        printer-bridge print-serial /dev/rfcomm0 -b 9600 receipt.bin

        # Serve commands to the GUI shell
        printer-bridge serve --port 8765
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


@main.command()
@click.option(
    "-a", "--address",
    type=str,
    default=None,
    help=f"Command server bind address. [env: {ENV_SERVER_ADDRESS}]",
)
@click.option(
    "-p", "--port",
    type=int,
    default=None,
    help=f"Command server port. [env: {ENV_SERVER_PORT}]",
)
@click.option(
    "--chunk-size",
    type=int,
    default=None,
    help="Serial write chunk size in bytes.",
)
@click.option(
    "--chunk-delay",
    type=float,
    default=None,
    help="Pause after each serial chunk in milliseconds.",
)
@click.option(
    "--payload-log-file",
    type=str,
    default=None,
    help="Append a record of every payload sent to this file.",
)
@click.pass_context
def serve(
    ctx: click.Context,
    address: str | None,
    port: int | None,
    chunk_size: int | None,
    chunk_delay: float | None,
    payload_log_file: str | None,
) -> None:
    """Run the JSON-lines command server for the GUI shell."""
    cli_args: dict[str, Any] = {
        "address": address,
        "port": port,
        "chunk_size": chunk_size,
        "chunk_delay": chunk_delay,
        "payload_log_file": payload_log_file,
    }
    config = load_config(ctx, cli_args)

    logger.info("Starting Printer Bridge")
    logger.info(f"  Server: {config.server.address}:{config.server.port}")
    logger.info(
        f"  Serial: {config.serial.chunk_size} byte chunks, {config.serial.chunk_delay} ms delay"
    )

    service = BridgeService.from_config(config)

    try:
        asyncio.run(run_service(service))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except OSError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    logger.info("Printer Bridge stopped")


async def run_service(service: BridgeService) -> None:
    """
    Run the service until SIGINT or SIGTERM.

    Args:
        service: The BridgeService instance to run.
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Shutdown signal received")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)

    try:
        await service.start()
        await stop_event.wait()
    finally:
        await service.stop()


@main.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print ports as JSON.")
@click.pass_context
def ports(ctx: click.Context, as_json: bool) -> None:
    """List serial ports visible to the operating system."""
    config = load_config(ctx, {})
    result = run_command(build_dispatcher(config), CommandName.LIST_PORTS, {})

    if as_json:
        click.echo(json.dumps(result.value, indent=2))
        return

    if not result.value:
        click.echo("No serial ports found")
        return

    for port in result.value:
        line = f"{port['port_name']}\t{port['port_type']}"
        if port["vid"] is not None:
            line += f"\t{port['vid']:04x}:{port['pid']:04x}"
            details = " ".join(
                part for part in (port["manufacturer"], port["product"]) if part
            )
            if details:
                line += f"\t{details}"
        click.echo(line)


@main.command("print-tcp")
@click.argument("host")
@click.argument("payload", type=click.File("rb"))
@click.option(
    "-p", "--port",
    type=int,
    default=None,
    help="Printer TCP port. [default: 9100]",
)
@click.pass_context
def print_tcp(ctx: click.Context, host: str, payload: Any, port: int | None) -> None:
    """Send PAYLOAD (a file, or - for stdin) to a network printer."""
    config = load_config(ctx, {"printer_port": port})
    data = payload.read()

    run_command(
        build_dispatcher(config),
        CommandName.TCP_PRINT,
        {"host": host, "port": config.tcp.port, "data": data},
    )
    click.echo(f"Sent {len(data)} bytes to {host}:{config.tcp.port}")


@main.command("print-serial")
@click.argument("port")
@click.argument("payload", type=click.File("rb"))
@click.option(
    "-b", "--baud-rate",
    type=int,
    default=None,
    help="Serial baud rate. [default: 9600]",
)
@click.pass_context
def print_serial(ctx: click.Context, port: str, payload: Any, baud_rate: int | None) -> None:
    """Send PAYLOAD (a file, or - for stdin) to a serial printer."""
    config = load_config(ctx, {"baud_rate": baud_rate})
    data = payload.read()

    run_command(
        build_dispatcher(config),
        CommandName.SERIAL_PRINT,
        {"port": port, "baud_rate": config.serial.baud_rate, "data": data},
    )
    click.echo(f"Sent {len(data)} bytes to {port}")


@main.command("generate-config")
@click.pass_context
def generate_config(ctx: click.Context) -> None:
    """Write the current configuration to the config file and exit."""
    config = load_config(ctx, {})
    target_path = ctx.obj["config_file"] or DEFAULT_CONFIG_PATH
    try:
        config.save(target_path)
    except OSError as e:
        click.echo(f"Error generating config file: {e}", err=True)
        sys.exit(1)
    click.echo(f"Configuration file generated: {target_path}")


if __name__ == "__main__":
    main()
