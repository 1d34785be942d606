"""Layout- and identity-preserving merge of parsed graphs."""

from sync_engine.reconcile.reconciler import reconcile

__all__ = ["reconcile"]
