"""Bookshelf: CRUD data access for books and categories over a relational store.

This package contains the entity definitions, the data-access context that
owns the store connection, and the HTTP and command-line adapters in front
of it.
"""

__version__ = "0.1.0"
