"""
Request ID middleware - Inject X-Request-ID for request correlation.

A client-supplied X-Request-ID is reused only when it is short and printable;
anything else is replaced so log lines can't be forged through the header.
"""

import re
import uuid
from flask import Flask, request, g

MAX_REQUEST_ID_LENGTH = 128
_SAFE_REQUEST_ID = re.compile(r'^[A-Za-z0-9._:\-]+$')


def _accept_request_id(raw) -> bool:
    return bool(raw) and len(raw) <= MAX_REQUEST_ID_LENGTH and bool(_SAFE_REQUEST_ID.match(raw))


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID middleware on Flask app.

    Injects X-Request-ID into:
    - Flask's g object (g.request_id)
    - Response headers (X-Request-ID)
    """

    @app.before_request
    def inject_request_id():
        request_id = request.headers.get('X-Request-ID')
        if not _accept_request_id(request_id):
            request_id = str(uuid.uuid4())
        g.request_id = request_id

    @app.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers['X-Request-ID'] = g.request_id
        return response
