"""
CLI module - unified command-line interface.

Provides entry points for:
- Serving the chat API
- Checking the OpenAI credential
- Adding and listing knowledge-base documents
"""

from kb_chat.cli.commands import (
    main,
    run_serve_cli,
    run_check_key_cli,
    run_add_cli,
    run_list_cli,
)

__all__ = [
    "main",
    "run_serve_cli",
    "run_check_key_cli",
    "run_add_cli",
    "run_list_cli",
]
