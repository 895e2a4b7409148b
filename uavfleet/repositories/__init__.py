"""Repository interfaces and implementations.

This package defines the abstract session repository used to persist the
logged-in state between command invocations, and its SQLite adapter under
:mod:`uavfleet.repositories.sqlite`.
"""
