from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .catalog import API_KEY_URLS, REPLICATE_MODEL_HINT, models_for
from .gen.config import AIImageConfig, ConfigError, load_config
from .gen.errors import ImageGenError
from .gen.generate import ImageGenerator
from .gen.types import PROVIDERS, GenerationRequest

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Generate images using OpenAI or Replicate APIs")
console = Console()

PROVIDER_LABELS = {"openai": "OpenAI", "replicate": "Replicate"}


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main() -> None:
    load_dotenv()


def _split_output(output: Optional[Path], output_dir: Optional[Path]) -> tuple[Optional[Path], Optional[str]]:
    if output is None:
        return output_dir, None
    if output.parent != Path("."):
        return output.parent, output.name
    return output_dir, output.name


def generate(
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Text prompt for image generation"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider to use (openai or replicate)"),
    api_key: Optional[str] = typer.Option(None, "--api-key", "-k", help="API key (overrides environment variable)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-d", help="Output directory"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model to use (provider-specific)"),
    size: str = typer.Option("1024x1024", "--size", "-s", help="Image size (1024x1024, 1536x1024, 1024x1536, auto)"),
    quality: Optional[str] = typer.Option(None, "--quality", "-q", help="Image quality (low, medium, high, auto) - OpenAI only"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="Output format (png, jpeg, webp) - OpenAI only"),
    compression: Optional[int] = typer.Option(None, "--compression", "-c", help="Compression 0-100 for JPEG/WebP - OpenAI only"),
    background: Optional[str] = typer.Option(None, "--background", "-b", help="Background (transparent, opaque, auto) - OpenAI only"),
    number: int = typer.Option(1, "--number", "-n", min=1, help="Number of images to generate"),
    debug: bool = typer.Option(False, "--debug", help="Log the full request parameters"),
    config_path: Optional[Path] = typer.Option(None, "--config", dir_okay=False, help="Path to ai-image.toml"),
):
    """Generate an image from a text prompt."""
    _configure_logging(debug)

    if not prompt or not prompt.strip():
        console.print('[bold red]Error:[/bold red] Prompt is required. Use --prompt "your prompt text"')
        raise typer.Exit(code=1)

    try:
        config: AIImageConfig = load_config(config_path)
        provider_name = (provider or config.default_provider).strip().lower()
        out_dir, out_name = _split_output(output, output_dir)

        request = GenerationRequest(
            prompt=prompt,
            provider=provider_name,
            model=model,
            size=size,
            quality=quality,
            format=fmt,
            compression=compression,
            background=background,
            count=number,
            debug=debug,
        )
        logger.debug("Request: %s", request)

        generator = ImageGenerator.from_env(
            provider_name,
            api_key=api_key,
            output_dir=out_dir,
            output_filename=out_name,
            config=config,
        )
        label = PROVIDER_LABELS.get(provider_name, provider_name)
        with console.status(f"Processing @ {label}..."):
            saved = generator.generate(request)
    except (ImageGenError, ConfigError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    console.print("[bold green]Image(s) generated successfully[/bold green]")
    for path in saved:
        console.print(f"Saved to: {escape(str(path))}")


app.command("generate")(generate)
app.command("gen", hidden=True)(generate)


@app.command()
def models():
    """List available models for each provider."""
    table = Table(title="Available Models")
    table.add_column("Provider")
    table.add_column("Model", no_wrap=True)
    table.add_column("Description")
    for provider in PROVIDERS:
        for m in models_for(provider):
            desc = f"{m.description} (default)" if m.default else m.description
            table.add_row(PROVIDER_LABELS[provider], m.model_id, desc)
    console.print(table)
    console.print(f"\nReplicate: {REPLICATE_MODEL_HINT}")
    console.print("Tip: check https://replicate.com/explore for more models")


@app.command()
def setup(config_path: Optional[Path] = typer.Option(None, "--config", dir_okay=False)):
    """Show how to set up API keys."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    console.print("[bold]Setup[/bold]\n")
    console.print("1. Create a .env file in your project root")
    console.print("2. Add your API keys:\n")
    for provider in PROVIDERS:
        console.print(f"   {config.api_key_env(provider)}=your_{provider}_api_key_here")
    console.print("\n3. Or pass the key directly with --api-key\n")
    console.print("Get your API keys:")
    for provider in PROVIDERS:
        console.print(f"   - {PROVIDER_LABELS[provider]}: {API_KEY_URLS[provider]}")


if __name__ == "__main__":
    app()
