"""
Wire — the HTTP surface.

    from tally.wire import create_app

    app = create_app(stores, orders, settings)      # run with uvicorn
"""

from tally.wire import _codecs as codecs
from tally.wire._fastapi import compile_routes, create_app

__all__ = ("codecs", "compile_routes", "create_app")
