"""
Command line interface for blog-thread.

Subcommands:

- serve: Run the HTTP API
- extract: Print the main content of a URL
- thread: Turn a URL, a text file or inline content into a numbered thread
- image: Generate an illustration for some content
- validate: Validate configuration and show which credentials are present

Every content command builds the same request body the HTTP endpoint
accepts and runs it through the Pipeline, so CLI and API behave the same.
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Dict, Any

from dotenv import load_dotenv

from . import __version__
from .config import Settings, load_config, resolve_settings
from .errors import ConfigError
from .logging import setup_logging, get_logger
from .models import ImageResult, PipelineResponse
from .pipeline import Pipeline


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="blog-thread",
        description="Turn long-form content into an engaging numbered thread."
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"blog-thread {__version__}"
    )

    parser.add_argument(
        "--config",
        help="Path to configuration file",
        default=None
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- serve subcommand ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # --- extract subcommand ---
    extract_parser = subparsers.add_parser("extract", help="Extract the main content of a URL")
    extract_parser.add_argument("--url", required=True, help="Page to extract")

    # --- thread subcommand ---
    thread_parser = subparsers.add_parser("thread", help="Generate a thread")
    source = thread_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Blog URL to extract content from")
    source.add_argument("--file", help="Text file with the blog content")
    source.add_argument("--content", help="Blog content inline")
    thread_parser.add_argument(
        "--count",
        type=int,
        default=5,
        help="Number of tweets (default: 5)"
    )
    thread_parser.add_argument(
        "--image",
        default=None,
        metavar="PATH",
        help="Also generate an illustration and save it as PNG"
    )
    thread_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw response body as JSON"
    )

    # --- image subcommand ---
    image_parser = subparsers.add_parser("image", help="Generate an illustration")
    image_source = image_parser.add_mutually_exclusive_group(required=True)
    image_source.add_argument("--file", help="Text file with the content to illustrate")
    image_source.add_argument("--content", help="Content to illustrate inline")
    image_source.add_argument("--prompt", help="Use this image prompt as-is")
    image_parser.add_argument(
        "--output",
        default="thread_image.png",
        help="Where to save the PNG (default: thread_image.png)"
    )

    # --- validate subcommand ---
    subparsers.add_parser("validate", help="Validate configuration file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    return args


def _load_env() -> None:
    """Load a .env file from the current directory or the project root."""
    env_paths = [
        ".env",
        os.path.join(os.path.dirname(__file__), '..', '..', '.env'),
    ]

    for env_path in env_paths:
        expanded = os.path.abspath(env_path)
        if os.path.exists(expanded):
            load_dotenv(expanded)
            return


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _report_error(response: PipelineResponse) -> int:
    stage = response.body.get("stage", "unknown")
    print(f"❌ {stage} error ({response.status}): {response.body.get('error')}", file=sys.stderr)
    return 1


def _save_image(data_uri: str, path: str) -> None:
    payload = data_uri.split(",", 1)[1]
    Path(path).write_bytes(ImageResult(payload=payload).decode())


def cmd_extract(args: argparse.Namespace, pipeline: Pipeline) -> int:
    """Handle the 'extract' subcommand."""
    response = pipeline.handle({"task": "content", "url": args.url})
    if not response.ok:
        return _report_error(response)

    print(response.body["text"])
    return 0


def cmd_thread(args: argparse.Namespace, pipeline: Pipeline) -> int:
    """Handle the 'thread' subcommand."""
    request: Dict[str, Any] = {"task": "thread", "tweetCount": args.count}
    if args.url:
        request["url"] = args.url
    elif args.file:
        request["content"] = _read_text(args.file)
    else:
        request["content"] = args.content

    if args.image:
        request["generateImage"] = True

    response = pipeline.handle(request)
    if not response.ok:
        return _report_error(response)

    body = response.body
    if args.json:
        print(json.dumps(body, indent=2, ensure_ascii=False))
    else:
        print(body["text"])

    for warning in body.get("warnings", []):
        print(f"⚠️  {warning}", file=sys.stderr)

    if args.image:
        if "imageUrl" in body:
            _save_image(body["imageUrl"], args.image)
            print(f"\n🖼️  Image saved to {args.image}", file=sys.stderr)
        else:
            print(f"\n⚠️  Image not generated: {body.get('imageError')}", file=sys.stderr)

    return 0


def cmd_image(args: argparse.Namespace, pipeline: Pipeline) -> int:
    """Handle the 'image' subcommand."""
    request: Dict[str, Any] = {"task": "image"}
    if args.prompt:
        request["imagePrompt"] = args.prompt
    elif args.file:
        request["content"] = _read_text(args.file)
    else:
        request["content"] = args.content

    response = pipeline.handle(request)
    if not response.ok:
        return _report_error(response)

    _save_image(response.body["imageUrl"], args.output)
    print(f"🖼️  Image saved to {args.output}")
    return 0


def cmd_validate(settings: Settings, config_path: Optional[str]) -> int:
    """Handle the 'validate' subcommand."""
    print(f"✅ Configuration valid: {config_path or 'defaults'}")
    print(f"\n   Text model: {settings.text_model} "
          f"({'key set' if settings.has_text_credentials else 'GEMINI_API_KEY missing'})")
    print(f"   Image backend: {settings.image_backend} / {settings.image_model} "
          f"({'key set' if settings.has_image_credentials else 'key missing'})")
    print(f"   Image prompt mode: {settings.image_prompt_mode}")
    print(f"   Thread output: {settings.thread_output}, "
          f"{settings.min_tweets}-{settings.max_tweets} tweets, {settings.max_tweet_chars} chars each")
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Handle the 'serve' subcommand."""
    import uvicorn
    from .api import create_app

    get_logger("cli").info("Serving on %s:%d", args.host, args.port)
    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level="info")
    return 0


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    try:
        args = parse_args(argv)
        _load_env()

        try:
            config = load_config(args.config)
            settings = resolve_settings(config)
        except ConfigError as e:
            print(f"❌ Configuration error: {e}", file=sys.stderr)
            sys.exit(1)

        setup_logging(config=config, secrets=[settings.gemini_api_key, settings.image_api_key])
        logger = get_logger("cli")
        logger.info("blog-thread %s, command: %s", __version__, args.command)

        pipeline = Pipeline(settings)

        if args.command == "serve":
            exit_code = cmd_serve(args, settings)
        elif args.command == "extract":
            exit_code = cmd_extract(args, pipeline)
        elif args.command == "thread":
            exit_code = cmd_thread(args, pipeline)
        elif args.command == "image":
            exit_code = cmd_image(args, pipeline)
        elif args.command == "validate":
            exit_code = cmd_validate(settings, args.config)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            exit_code = 1

        sys.exit(exit_code)

    except KeyboardInterrupt:
        print("\n\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except OSError as e:
        print(f"❌ File error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
