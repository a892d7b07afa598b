"""
Ops Module
==========

Public liveness probe for uptime monitors and load balancers.

Usage:
    from listkeeper.modules.ops import ops_health_bp

    app.register_blueprint(ops_health_bp)  # Registers at /health_check
"""

from flask import Blueprint

# Public health endpoint (no auth, for uptime monitors)
ops_health_bp = Blueprint(
    'ops_health',
    __name__,
    url_prefix='/health_check'
)

from . import routes  # noqa: E402,F401
