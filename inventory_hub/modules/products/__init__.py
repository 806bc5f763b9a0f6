"""Products module: catalog state behind the privileged endpoints and the transfer consumer."""
