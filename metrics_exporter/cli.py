"""
Single entry point for metrics-exporter usage: serve, run, check, show, version.
"""

import argparse
import json
import os
import sys
import threading

from metrics_exporter import __version__


def _settings(args: argparse.Namespace):
    """Engine settings from --config-dir (or CONFIG_DIR / 'conf'); also configures logging."""
    from metrics_exporter.config.loader import load_engine_settings
    from metrics_exporter.logging import configure_logging
    settings = load_engine_settings(args.config_dir)
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)
    return settings


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the admin server (Uvicorn); the app lifespan starts and stops the exporter."""
    settings = _settings(args)
    # create_app() loads settings itself; point it at the same directory.
    os.environ["CONFIG_DIR"] = settings.config_dir
    host = args.host if args.host is not None else settings.host
    port = args.port if args.port is not None else settings.port
    import errno
    import uvicorn
    try:
        uvicorn.run("metrics_exporter.main:create_app", factory=True, host=host, port=port)
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            print(f"Port {port} is already in use. Use another port: metrics-exporter serve --port {port + 1}", file=sys.stderr)
        raise
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """Run the exporter in the foreground until interrupted (or for --run-seconds)."""
    from metrics_exporter.errors import ConfigurationError
    from metrics_exporter.plugin import ExporterPlugin
    settings = _settings(args)
    plugin = ExporterPlugin(settings)
    done = threading.Event()
    try:
        plugin.on_start()
    except ConfigurationError as e:
        print(f"Fatal configuration error: {e}", file=sys.stderr)
        plugin.on_stop()
        return 1
    try:
        done.wait(args.run_seconds)
    except KeyboardInterrupt:
        pass
    finally:
        plugin.on_stop()
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Read and validate the properties file once (with environment overrides); exit 1 if unusable."""
    from metrics_exporter.config.engine import ReloadEngine
    from metrics_exporter.config.validator import ConfigValidator, Reject
    from metrics_exporter.errors import PropertiesFormatError
    engine = ReloadEngine.from_settings(_settings(args))
    try:
        candidate = engine.read_candidate()
    except (OSError, PropertiesFormatError) as e:
        print(f"Cannot read {engine.path}: {e}", file=sys.stderr)
        return 1
    result = ConfigValidator().validate(candidate)
    if isinstance(result, Reject):
        print(f"Rejected {engine.path}: {result.key}={result.value!r}: {result.reason}", file=sys.stderr)
        return 1
    print(f"OK: {engine.path} ({len(result.values)} keys)")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print the resolved configuration (file values plus environment overrides) as JSON."""
    from metrics_exporter.config.engine import ReloadEngine
    from metrics_exporter.errors import PropertiesFormatError
    engine = ReloadEngine.from_settings(_settings(args))
    try:
        candidate = engine.read_candidate()
    except (OSError, PropertiesFormatError) as e:
        print(f"Cannot read {engine.path}: {e}", file=sys.stderr)
        return 1
    print(json.dumps(candidate, indent=2, sort_keys=True))
    return 0


def cmd_version(_: argparse.Namespace) -> int:
    """Print version."""
    print(__version__)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="metrics-exporter",
        description="Metrics exporter with a live-reloading properties file: serve, run, check, show, version.",
    )
    parser.add_argument("--config-dir", default=None, help="Directory with exporter.yaml and the properties file (default: CONFIG_DIR env or 'conf')")
    parser.add_argument("--log-level", default=None, help="Log level (default: from exporter.yaml)")
    sub = parser.add_subparsers(dest="command", required=True)

    # serve (host/port from exporter.yaml or --host/--port)
    p_serve = sub.add_parser("serve", help="Start the admin API server (Uvicorn) and the exporter")
    p_serve.add_argument("--host", default=None, help="Bind host (default: from exporter.yaml)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: from exporter.yaml)")
    p_serve.set_defaults(func=cmd_serve)

    # run
    p_run = sub.add_parser("run", help="Run the exporter in the foreground (no HTTP server)")
    p_run.add_argument("--run-seconds", type=float, default=None, help="Stop after N seconds (default: until Ctrl-C)")
    p_run.set_defaults(func=cmd_run)

    # check
    p_check = sub.add_parser("check", help="Validate the properties file once; exit 1 if rejected or unreadable")
    p_check.set_defaults(func=cmd_check)

    # show
    p_show = sub.add_parser("show", help="Print resolved configuration (with environment overrides) as JSON")
    p_show.set_defaults(func=cmd_show)

    # version
    p_version = sub.add_parser("version", help="Print version")
    p_version.set_defaults(func=cmd_version)

    args = parser.parse_args()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
