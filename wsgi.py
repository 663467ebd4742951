"""
WSGI entrypoint.

Production servers import ``app`` from this module.
"""

import signal

from approval_resender.app import _handle_sigterm, create_app


signal.signal(signal.SIGTERM, _handle_sigterm)

app = create_app()
