"""Routes module: the inventory route audit ledger and route commands."""
