"""Runtime settings from the command line, environment and defaults.

Port, host and password may be given positionally, e.g.::

    python app.py 3000 0.0.0.0 mypassword
"""
import argparse
import os
from dataclasses import dataclass

DEFAULT_PORT = 3000
DEFAULT_HOST = '0.0.0.0'
DEFAULT_STATIC_DIR = os.path.join(os.path.dirname(__file__), '..', 'static')


@dataclass
class Settings:
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    # Empty means no password is required
    password: str = ''
    static_dir: str = DEFAULT_STATIC_DIR
    log_level: str = 'INFO'


def build_parser():
    parser = argparse.ArgumentParser(description='Voxel game relay server')
    parser.add_argument('pos_port', nargs='?', metavar='port', help='Port to listen on (default 3000)')
    parser.add_argument('pos_host', nargs='?', metavar='host', help='Interface to bind (default 0.0.0.0)')
    parser.add_argument('pos_password', nargs='?', metavar='password', help='Optional server password')
    parser.add_argument('--port', '-p', help='Port to listen on')
    parser.add_argument('--host', help='Interface to bind')
    parser.add_argument('--password', help='Optional server password')
    parser.add_argument('--static-dir', help='Directory of static client files')
    parser.add_argument('--level', '-l', help='Logging level (DEBUG, INFO, WARNING, ERROR)')
    return parser


def load_settings(argv=None, environ=None) -> Settings:
    """Resolve settings: command line first, then environment, then defaults."""
    environ = os.environ if environ is None else environ
    parser = build_parser()
    args = parser.parse_args(argv)

    port = args.port or args.pos_port or environ.get('PORT') or DEFAULT_PORT
    try:
        port = int(port)
    except (TypeError, ValueError):
        parser.error(f"invalid port: {port!r}")
    if not 0 <= port <= 65535:
        parser.error(f"port out of range: {port}")

    return Settings(
        port=port,
        host=args.host or args.pos_host or environ.get('HOST') or DEFAULT_HOST,
        password=args.password or args.pos_password or environ.get('PASSWORD') or '',
        static_dir=args.static_dir or environ.get('STATIC_DIR') or DEFAULT_STATIC_DIR,
        log_level=(args.level or environ.get('LOG_LEVEL') or 'INFO').upper(),
    )
