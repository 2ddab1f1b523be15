"""
tally — checkout pricing core.

    from tally import pricing as P      # Rates, delivery rules, charges, coupons, totals
    from tally import store             # Admin-configured catalog (memory / SQLAlchemy)
    from tally import checkout          # Quote graph: calculate_checkout, delivery options
    from tally import orders            # Idempotent pay-on-delivery orders
    from tally import wire              # FastAPI surface
"""

from tally import pricing
from tally import store
from tally import checkout
from tally import orders
from tally.config import Settings, load_settings, configure_logging

__version__ = "0.1.0"

__all__ = (
    "pricing",
    "store",
    "checkout",
    "orders",
    "Settings",
    "load_settings",
    "configure_logging",
)
