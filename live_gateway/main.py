import argparse
from pathlib import Path

from live_gateway.backend.runtime import ApplicationRuntime
from live_gateway.backend.transport import serve_http
from live_gateway.config import DEFAULT_CONFIG_PATH, ServerConfig, load_config
from live_gateway.utils.logger import LOGGER, configure_logging


def serve(config: ServerConfig) -> None:
    """Build the runtime and run the HTTP + WebSocket gateway."""
    runtime = ApplicationRuntime(config.to_gateway_config())
    LOGGER.info(
        "Live gateway starting on port %s (backend=%s, model=%s)",
        config.port,
        config.backend,
        config.model,
    )
    serve_http(
        runtime,
        host=config.host,
        port=config.port,
        cors_origins=config.cors_origins,
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live model session gateway")
    parser.add_argument(
        "--config",
        type=str,
        help=f"Path to YAML config (default search: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument("--host", default=None, help="Interface to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to bind")
    parser.add_argument(
        "--backend",
        default=None,
        help="Model backend to use (gemini, echo)",
    )
    parser.add_argument(
        "--model", default=None, help="Default model name for new sessions"
    )
    parser.add_argument(
        "--cors-origin",
        action="append",
        dest="cors_origins",
        help="Allowed CORS origin; repeat for several",
    )
    parser.add_argument(
        "--session-timeout",
        type=float,
        default=None,
        help="Seconds of inactivity before a session is evicted (<=0 disables)",
    )
    parser.add_argument(
        "--max-sessions",
        type=int,
        default=None,
        help="Maximum concurrent live sessions (0 = unlimited)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO); overrides config",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path; overrides config",
    )
    return parser.parse_args(argv)


def configure_from_args(args: argparse.Namespace) -> ServerConfig:
    config_arg_path = Path(args.config).expanduser() if args.config else None
    effective_config_path = config_arg_path or DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.backend is not None:
        config.backend = args.backend
    if args.model is not None:
        config.model = args.model
    if args.cors_origins:
        config.cors_origins = list(args.cors_origins)
    if args.session_timeout is not None:
        config.session_timeout_sec = args.session_timeout
    if args.max_sessions is not None:
        config.max_sessions = args.max_sessions
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_file is not None:
        config.log_file = args.log_file

    configure_logging(config.log_level, config.log_file)
    if effective_config_path.exists():
        LOGGER.info("Loaded server config from %s", effective_config_path)
    else:
        LOGGER.info(
            "Server config file not found at %s; using defaults/CLI overrides",
            effective_config_path,
        )
    return config


def main() -> None:
    args = parse_args()
    config = configure_from_args(args)
    serve(config)


if __name__ == "__main__":
    main()
