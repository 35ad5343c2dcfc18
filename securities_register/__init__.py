"""Securities register ledger service."""
