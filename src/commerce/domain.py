"""Commerce bounded context — Catalogue, Inventory and Order Fulfillment.

Hosts the Product and Order aggregates, the stock ledger that guards product
stock against overselling, and the fulfillment orchestrator that turns order
requests into persisted orders.
"""

import os

from protean.domain import Domain

from commerce.utils.logging import configure_logging, get_logger

# Log files are only written when a directory is configured
configure_logging(log_dir=os.getenv("COMMERCE_LOG_DIR"))

commerce = Domain(name="commerce")

logger = get_logger(__name__)
