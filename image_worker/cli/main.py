"""
Main CLI Application
Typer commands wrapping the resize_image and upload_image tools
"""

import asyncio
from typing import Annotated, Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.table import Table

from image_worker import __version__
from image_worker.config import settings
from image_worker.core.constants import SUPPORTED_UPLOAD_SERVICES
from image_worker.core.exceptions import ImageWorkerError
from image_worker.models.transform import FitStrategy, OutputFormat, Position
from image_worker.tools import call_tool, list_tools
from image_worker.utils.logging import setup_logging

app = typer.Typer(
    name="image-worker",
    help="Transform images and upload them to S3, Cloudflare R2 or Google Cloud Storage",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
err_console = Console(stderr=True)


def source_arguments(source: str) -> Dict[str, str]:
    """Route a SOURCE argument to imageUrl, base64Image or imagePath."""
    if source.startswith(("http://", "https://")):
        return {"imageUrl": source}
    if source.startswith("data:"):
        return {"base64Image": source}
    return {"imagePath": source}


def _run(tool_name: str, arguments: Dict[str, Any]) -> None:
    """Call a tool, print its result and exit non-zero on failure."""
    cleaned = {key: value for key, value in arguments.items() if value is not None}
    try:
        result = asyncio.run(call_tool(tool_name, cleaned))
    except ImageWorkerError as e:
        err_console.print(f"[red]Error ({e.error_code}):[/red] {e.message}")
        raise typer.Exit(1)

    text = result.content[0].text if result.content else ""
    if result.is_error:
        err_console.print(f"[red]{text}[/red]")
        raise typer.Exit(1)
    console.print(JSON(text))


@app.callback()
def main(
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Enable debug logging")
    ] = False,
    json_logs: Annotated[
        bool, typer.Option("--json-logs", help="Render logs as JSON")
    ] = False,
):
    """
    Image Worker CLI

    SOURCE may be a file path, an http(s) URL or a data: URL.

    [bold green]Examples:[/bold green]
      [cyan]image-worker transform photo.heic -f webp -w 800 -o photo.webp[/cyan]
      [cyan]image-worker upload photo.jpg --service s3 --folder 2024[/cyan]
    """
    setup_logging(
        log_level="DEBUG" if verbose else settings.log_level,
        json_logs=json_logs or settings.json_logs,
        enable_file_logging=settings.logging_enabled,
        log_dir=settings.log_dir,
        max_log_size_mb=settings.max_log_size_mb,
        backup_count=settings.log_backup_count,
    )


@app.command()
def transform(
    source: Annotated[str, typer.Argument(help="File path, URL or data URL")],
    format: Annotated[
        Optional[OutputFormat], typer.Option("-f", "--format", help="Output format")
    ] = None,
    width: Annotated[
        Optional[int], typer.Option("-w", "--width", min=1, max=10000)
    ] = None,
    height: Annotated[
        Optional[int], typer.Option("-H", "--height", min=1, max=10000)
    ] = None,
    quality: Annotated[
        Optional[int], typer.Option("-q", "--quality", min=1, max=100)
    ] = None,
    fit: Annotated[Optional[FitStrategy], typer.Option("--fit")] = None,
    position: Annotated[Optional[Position], typer.Option("--position")] = None,
    background: Annotated[
        Optional[str], typer.Option("--background", help="Padding colour")
    ] = None,
    without_enlargement: Annotated[
        Optional[bool], typer.Option("--without-enlargement")
    ] = None,
    without_reduction: Annotated[
        Optional[bool], typer.Option("--without-reduction")
    ] = None,
    rotate: Annotated[
        Optional[float], typer.Option("--rotate", help="Clockwise degrees")
    ] = None,
    flip: Annotated[Optional[bool], typer.Option("--flip")] = None,
    flop: Annotated[Optional[bool], typer.Option("--flop")] = None,
    grayscale: Annotated[Optional[bool], typer.Option("--grayscale")] = None,
    blur: Annotated[Optional[float], typer.Option("--blur", help="Sigma")] = None,
    sharpen: Annotated[Optional[float], typer.Option("--sharpen", help="Sigma")] = None,
    gamma: Annotated[Optional[float], typer.Option("--gamma")] = None,
    negate: Annotated[Optional[bool], typer.Option("--negate")] = None,
    normalize: Annotated[Optional[bool], typer.Option("--normalize")] = None,
    threshold: Annotated[Optional[int], typer.Option("--threshold")] = None,
    trim: Annotated[Optional[bool], typer.Option("--trim")] = None,
    output: Annotated[
        Optional[str], typer.Option("-o", "--output", help="Save the result here")
    ] = None,
    include_image: Annotated[
        bool, typer.Option("--include-image", help="Print the data URL too")
    ] = False,
):
    """Resize, convert or filter an image."""
    arguments: Dict[str, Any] = {
        **source_arguments(source),
        "format": format.value if format else None,
        "width": width,
        "height": height,
        "quality": quality,
        "fit": fit.value if fit else None,
        "position": position.value if position else None,
        "background": background,
        "withoutEnlargement": without_enlargement,
        "withoutReduction": without_reduction,
        "rotate": rotate,
        "flip": flip,
        "flop": flop,
        "grayscale": grayscale,
        "blur": blur,
        "sharpen": sharpen,
        "gamma": gamma,
        "negate": negate,
        "normalize": normalize,
        "threshold": threshold,
        "trim": trim,
        "outputPath": output,
        "outputImage": include_image,
    }
    _run("resize_image", arguments)


@app.command()
def upload(
    source: Annotated[str, typer.Argument(help="File path, URL or data URL")],
    service: Annotated[
        Optional[str],
        typer.Option(
            "-s",
            "--service",
            help=f"One of {', '.join(SUPPORTED_UPLOAD_SERVICES)} (default: UPLOAD_SERVICE or s3)",
        ),
    ] = None,
    filename: Annotated[Optional[str], typer.Option("--filename")] = None,
    folder: Annotated[Optional[str], typer.Option("--folder")] = None,
    public: Annotated[bool, typer.Option("--public/--private")] = True,
    overwrite: Annotated[bool, typer.Option("--overwrite")] = False,
    tag: Annotated[
        Optional[List[str]], typer.Option("--tag", help="Repeatable, key=value or key")
    ] = None,
    meta: Annotated[
        Optional[List[str]], typer.Option("--meta", help="Repeatable key=value")
    ] = None,
):
    """Upload an image to object storage."""
    metadata = None
    if meta:
        metadata = {}
        for item in meta:
            key, sep, value = item.partition("=")
            if not sep:
                raise typer.BadParameter(f"Expected key=value, got {item!r}", param_hint="--meta")
            metadata[key] = value

    arguments: Dict[str, Any] = {
        **source_arguments(source),
        "service": service,
        "filename": filename,
        "folder": folder,
        "public": public,
        "overwrite": overwrite,
        "tags": tag or None,
        "metadata": metadata,
    }
    _run("upload_image", arguments)


@app.command()
def tools():
    """List the available tools."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Arguments", style="dim")
    for tool in list_tools():
        table.add_row(
            tool.name,
            tool.description,
            ", ".join(tool.input_schema.get("properties", {})),
        )
    console.print(table)


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host")] = None,
    port: Annotated[Optional[int], typer.Option("--port")] = None,
    reload: Annotated[bool, typer.Option("--reload")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "image_worker.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_config=None,
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]{settings.app_name}[/bold] {__version__}")


if __name__ == "__main__":
    app()
