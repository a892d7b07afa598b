"""
Listkeeper Modules
==================

Flask blueprint modules for the mailing list: subscribers, email, ops.
"""

__all__ = ['email', 'ops', 'subscribers']
