"""Mini README: Storage collaborators for the fund ledger.

Proof attachments live on the local file system behind ``ProofStorage`` so
the transaction store can remove orphaned files when records change.
"""

from .proofs import ProofStorage, ProofUpload

__all__ = ["ProofStorage", "ProofUpload"]
