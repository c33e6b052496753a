"""
CLI commands - entry points for serving and managing the knowledge base.

Each command follows a consistent pattern:
1. Parse arguments
2. Load environment
3. Delegate to the server / store
4. Print results
5. Return exit code
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from kb_chat.config import Settings, check_credentials, configure_logging, load_env
from kb_chat.core.errors import KBChatError


def _load_env() -> None:
    """Load .env and configure logging."""
    load_env()
    configure_logging()


def _open_store(settings: Settings, with_embeddings: bool):
    """Build a SQLite store; embeddings only when the command writes."""
    from kb_chat.embeddings import OpenAIEmbeddings
    from kb_chat.llm import create_openai_client
    from kb_chat.retrieval import DocumentStoreConfig, get_document_store

    embeddings = None
    if with_embeddings and settings.has_api_key:
        client = create_openai_client(settings.api_key, timeout_seconds=settings.timeout_seconds)
        embeddings = OpenAIEmbeddings(client, model=settings.embedding_model)
    store = get_document_store(embeddings, DocumentStoreConfig(db_path=settings.db_path))
    store.create_schema()
    return store


def run_serve_cli() -> int:
    """CLI entry point for the HTTP server."""
    from kb_chat.server import run

    _load_env()

    parser = argparse.ArgumentParser(description="Run the chat API server")
    parser.add_argument("--host", help="Bind address (default: HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port (default: PORT or 3000)")
    args = parser.parse_args()

    try:
        settings = Settings.from_env()
        if args.host:
            settings.host = args.host
        if args.port:
            settings.port = args.port
        run(settings)
    except KBChatError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1
    return 0


def run_check_key_cli() -> int:
    """Verify OPENAI_API_KEY is available. Never prints the value."""
    _load_env()

    if os.environ.get("OPENAI_API_KEY"):
        print("OPENAI_API_KEY is set (value redacted).")
        return 0

    print("ERROR: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
    print(
        "Set it in .env for local development, or add a repository secret "
        "named OPENAI_API_KEY for CI.",
        file=sys.stderr,
    )
    return 1


def run_add_cli() -> int:
    """CLI entry point for adding a document."""
    _load_env()

    parser = argparse.ArgumentParser(description="Add a document to the knowledge base")
    parser.add_argument("--title", help="Optional document title")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--content", help="Document text")
    source.add_argument("--file", type=Path, help="Read document text from a file")
    args = parser.parse_args()

    if args.content is not None:
        content = args.content
    else:
        try:
            content = args.file.read_text(encoding="utf-8")
        except OSError as e:
            print(f"ERROR: cannot read {args.file}: {e.strerror or e}", file=sys.stderr)
            return 1

    try:
        settings = Settings.from_env()
        check_credentials(settings)
        store = _open_store(settings, with_embeddings=True)
        doc_id = asyncio.run(store.add(content, title=args.title))
    except KBChatError as e:
        detail = f" ({e.details})" if e.details else ""
        print(f"ERROR: {e.message}{detail}", file=sys.stderr)
        return 1

    print(f"Added document {doc_id}")
    return 0


def run_list_cli() -> int:
    """CLI entry point for listing documents."""
    _load_env()

    parser = argparse.ArgumentParser(description="List knowledge-base documents")
    parser.add_argument("--width", type=int, default=80, help="Snippet characters to print")
    args = parser.parse_args()

    try:
        store = _open_store(Settings.from_env(), with_embeddings=False)
    except KBChatError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1
    summaries = asyncio.run(store.list_documents())

    if not summaries:
        print("No documents stored.")
        return 0

    for summary in summaries:
        snippet = summary.snippet.replace("\n", " ")[: args.width]
        print(f"  [{summary.id}] {summary.title or 'untitled'} ({summary.created_at})")
        print(f"        {snippet}")
    print(f"\nTotal: {len(summaries)}")
    return 0


def main() -> int:
    """
    Main CLI entry point with subcommands.

    Usage:
        kb-chat serve        # Start the HTTP server
        kb-chat check-key    # Verify OPENAI_API_KEY is set
        kb-chat add          # Add a document
        kb-chat list         # List documents
    """
    parser = argparse.ArgumentParser(
        description="Knowledge-base chat server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  serve       Start the HTTP API (and optional static front-end)
  check-key   Exit 0 if OPENAI_API_KEY is set, 1 otherwise
  add         Embed and store a document
  list        Show stored documents, newest first

Examples:
  kb-chat serve --port 8080
  kb-chat add --title "Runbook" --file docs/runbook.md
        """,
    )

    parser.add_argument(
        "command",
        choices=["serve", "check-key", "add", "list"],
        help="Command to run",
    )

    # Parse just the command first
    args, remaining = parser.parse_known_args()

    commands = {
        "serve": run_serve_cli,
        "check-key": run_check_key_cli,
        "add": run_add_cli,
        "list": run_list_cli,
    }

    # Re-inject remaining args for the subcommand
    sys.argv = [sys.argv[0]] + remaining

    try:
        return commands[args.command]()
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
