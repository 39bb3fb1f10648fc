"""
Version 1 of the marketplace API.

The v1 router is mounted at the application root, so its paths are
``/auth``, ``/services``, ``/requests`` and so on.  A future ``v2``
would live beside this package under its own prefix.
"""
