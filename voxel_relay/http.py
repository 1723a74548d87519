"""Static file serving for the browser client, on the same port as the WebSocket endpoint."""
import logging
import os
from http import HTTPStatus

from websockets.datastructures import Headers
from websockets.http11 import Response

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    '.html': 'text/html',
    '.css': 'text/css',
    '.js': 'application/javascript',
    '.mjs': 'application/javascript',
    '.json': 'application/json',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.ico': 'image/x-icon',
    '.wav': 'audio/wav',
    '.mp3': 'audio/mpeg',
}


def _response(status: HTTPStatus, body: bytes, content_type='text/plain'):
    headers = Headers([
        ('Content-Type', content_type),
        ('Content-Length', str(len(body))),
        ('Connection', 'close'),
    ])
    return Response(status.value, status.phrase, headers, body)


def is_websocket_upgrade(request) -> bool:
    return 'websocket' in request.headers.get('Upgrade', '').lower()


def resolve_static_path(static_dir, request_path):
    """Map a request path onto a file under ``static_dir``.

    Returns None for paths that try to climb out of the directory.
    """
    clean_path = request_path.split('?')[0]
    if clean_path in ('', '/'):
        clean_path = '/index.html'
    if '..' in clean_path:
        return None
    root = os.path.abspath(static_dir)
    file_path = os.path.abspath(os.path.join(root, clean_path.lstrip('/')))
    if os.path.commonpath([root, file_path]) != root:
        return None
    return file_path


def make_static_handler(static_dir):
    """Build a ``process_request`` hook that answers plain HTTP requests from ``static_dir``.

    WebSocket upgrade requests fall through to the handshake.
    """

    def serve_static(connection, request):
        if is_websocket_upgrade(request):
            return None
        file_path = resolve_static_path(static_dir, request.path)
        if file_path is None:
            return _response(HTTPStatus.FORBIDDEN, b'Forbidden')
        content_type = CONTENT_TYPES.get(os.path.splitext(file_path)[1].lower(), 'text/plain')
        try:
            with open(file_path, 'rb') as f:
                content = f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return _response(HTTPStatus.NOT_FOUND, b'File not found')
        logger.debug(f"🌐 Served {request.path} ({len(content)} bytes)")
        return _response(HTTPStatus.OK, content, content_type)

    return serve_static
