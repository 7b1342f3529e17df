"""Commerce core: product catalogue, stock ledger and order fulfillment."""
