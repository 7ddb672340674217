"""
ct_log_store — Certificate Transparency log-list store.

Loads the CT log list published on disk, caches it behind a time-based
reload gate, and answers "is this log known?" and "is the store compliant?"
for TLS certificate validation.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
