"""Domain services: credential store, refresh ledger, blacklist, sessions and catalog."""
