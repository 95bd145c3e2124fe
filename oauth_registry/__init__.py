"""
OAuth client registry.

Owner-scoped management of third-party OAuth client registrations: create,
read, update and delete of clients, secret rotation, logo handling, and
whole-scope replacement validated against the reserved scope grammar.
"""

__version__ = "1.0.0"
