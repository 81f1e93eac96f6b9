"""
Command-line interface tools for the Indisense service.
"""

import asyncio
import json
import mimetypes
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import httpx
import typer

from .capture import CapturePayload, CaptureSession
from .client import DEFAULT_BASE_URL, AnalysisClient
from .errors import AnalysisError
from .models import AnalysisResult, InputKind

app = typer.Typer(help="Indisense CLI tools")


# MARK: - CLI Entry Points


def cli_analyze_text() -> None:
    """Entry point for indisense-text CLI command."""
    typer.run(text)


def cli_analyze_file() -> None:
    """Entry point for indisense-file CLI command."""
    typer.run(file)


# MARK: - Commands


@app.command()
def text(
    content: str = typer.Argument(..., help="The text to analyze"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Indisense service"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Analyze the sentiment of a piece of text."""
    capture = CaptureSession(InputKind.TEXT)
    capture.set_text(content)
    if not capture.can_submit:
        print("Error: No text provided for analysis")
        raise typer.Exit(1)

    _run_with_error_handling(
        _analyze(capture.submit(), base_url, json_output), base_url
    )


@app.command()
def file(
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Audio or video file to analyze"
    ),
    video: bool = typer.Option(
        False, "--video", help="Treat the file as video (default: guess from type)"
    ),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the Indisense service"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Transcribe an audio or video file and analyze what was said."""
    kind = InputKind.VIDEO if video or _looks_like_video(path) else InputKind.AUDIO

    with CaptureSession(kind) as capture:
        try:
            capture.select_path(path)
        except AnalysisError as e:
            print(f"Error: {e.message}")
            raise typer.Exit(1)
        payload = capture.submit()

    _run_with_error_handling(_analyze(payload, base_url, json_output), base_url)


@app.command()
def serve() -> None:
    """Run the Indisense server."""
    from .server import main

    main()


# MARK: - Private Helpers


def _looks_like_video(path: Path) -> bool:
    mime_type, _ = mimetypes.guess_type(path.name)
    return bool(mime_type and mime_type.startswith("video/"))


async def _analyze(payload: CapturePayload, base_url: str, json_output: bool) -> None:
    async with AnalysisClient(base_url) as client:
        result = await client.analyze(payload)

    if json_output:
        print(json.dumps(result.to_response(), indent=2, ensure_ascii=False))
        return
    print(_format_result(result))


def _format_result(result: AnalysisResult) -> str:
    """Render a result as plain text lines."""
    lines = [
        f"Overall: {result.overall_sentiment.value} "
        f"(confidence {result.confidence}%)",
        "",
    ]
    for label, score in result.emotions.as_dict().items():
        lines.append(f"  {label:<9}{score:6.1f}")

    if result.key_themes:
        lines += ["", "Key themes: " + ", ".join(result.key_themes)]
    if result.transcription:
        lines += ["", f"Transcription: {result.transcription}"]
    return "\n".join(lines)


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except AnalysisError as e:
        print(f"Error: {e.message}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
