"""Query side: read-only projections over the public log."""

from guestbook.indexer.projection import IndexedSignature, IndexSnapshot, SignatureIndexer

__all__ = ["IndexedSignature", "IndexSnapshot", "SignatureIndexer"]
