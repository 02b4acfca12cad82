"""
Billing Kernel

The billing core of a hosting control-plane client:
- A ledger of per-account charges and payments with confirmation states
- Lazily cached, multi-currency balance aggregates over a ledger snapshot
- Linear ledger search
- Package / definition / resource-limit rate catalog
- Deterministic overage billing from live resource usage
"""

__version__ = "0.1.0"
