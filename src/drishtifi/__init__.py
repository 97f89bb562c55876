"""
DrishtiFi: digital credit-readiness reports for offline shops.

The package turns two shop photographs (inventory and handwritten ledger)
into a structured credit assessment via a multimodal model, keeps users and
reports in a key-value store, and serves everything over a small HTTP API.
"""

__all__ = [
    "config",
    "errors",
    "logging",
    "paths",
]
