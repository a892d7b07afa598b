"""
Ops Routes
==========

Public liveness endpoint. Deliberately touches nothing but the process itself.
"""

from flask import Response

from . import ops_health_bp


@ops_health_bp.route('', methods=['GET'])
def health_check():
    """200 with an empty body while the process is serving requests"""
    return Response(status=200)
