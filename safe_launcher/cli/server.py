"""Server CLI commands."""


def subcommand_serve(args) -> None:
    """Handler for the serve subcommand."""
    # Imported here so the CLI starts without loading the server stack.
    from safe_launcher.server import app as server_app

    server_app.run(args)


def add_parser(subparsers):
    parser_serve = subparsers.add_parser(
        "serve", help="run the launcher directory service"
    )
    parser_serve.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="directory holding config.yaml (default: $SAFE_LAUNCHER_CONFIG_DIR or ./config)",
    )
    parser_serve.add_argument("--host", type=str, default=None, help="address to bind")
    parser_serve.add_argument("--port", type=int, default=None, help="port to listen on")
    parser_serve.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    parser_serve.set_defaults(func=subcommand_serve)
