"""
Task Manager Server CLI - Start the web backend.

Usage:
    taskmanager-server                        # Start with defaults
    taskmanager-server --port 8000            # Custom port
    taskmanager-server --env /path/to/.env    # Custom env file
    taskmanager-server --mock-backend         # In-memory backend, no Supabase project
"""

import argparse
import os
import sys
from pathlib import Path


def _apply_env_file(env_path: Path) -> None:
    """Load environment variables from a .env file."""
    from dotenv import load_dotenv

    if not env_path.exists():
        print(f"Error: env file not found: {env_path}", file=sys.stderr)
        sys.exit(2)

    load_dotenv(dotenv_path=str(env_path))


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser for taskmanager-server CLI."""
    parser = argparse.ArgumentParser(
        prog="taskmanager-server",
        description="Start the Task Manager web backend.",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run the server on (default: 8000 or PORT env var).",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: 127.0.0.1 or TASKMANAGER_HOST env var).",
    )
    parser.add_argument(
        "--env",
        dest="env_file",
        default=None,
        help="Path to .env file (default: .env in current directory or project root).",
    )
    parser.add_argument(
        "--mock-backend",
        action="store_true",
        help="Keep users and tasks in memory instead of a Supabase project (sets USE_MOCK_BACKEND).",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development (not recommended for production).",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )
    return parser


def run_server(args: argparse.Namespace) -> int:
    """Run the server with the given arguments."""
    import uvicorn

    host = args.host or os.getenv("TASKMANAGER_HOST", "127.0.0.1")
    port = args.port or int(os.getenv("PORT", "8000"))

    print(f"Starting Task Manager on {host}:{port}")

    if args.reload:
        print("Warning: --reload is enabled. This is not recommended for production.")
        uvicorn.run("taskmanager.main:app", host=host, port=port, reload=True)
    else:
        # Per-tab state lives in this process, so a single worker serves every tab
        from taskmanager.main import app

        uvicorn.run(app, host=host, port=port)

    return 0


def main() -> None:
    """Main entry point for taskmanager-server CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.version:
        from taskmanager.version import VERSION
        print(f"taskmanager-server version {VERSION}")
        sys.exit(0)

    # Apply env file first (before any import that reads settings)
    if args.env_file:
        _apply_env_file(Path(args.env_file).expanduser())
    else:
        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            _apply_env_file(cwd_env)
        else:
            pkg_root_env = Path(__file__).resolve().parents[1] / ".env"
            if pkg_root_env.exists():
                _apply_env_file(pkg_root_env)

    if args.mock_backend:
        os.environ["USE_MOCK_BACKEND"] = "true"

    sys.exit(run_server(args))


if __name__ == "__main__":
    main()
