"""Comment threads, the vote ledger, and request payloads."""
