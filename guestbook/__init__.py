"""Guestbook: timestamped signature records mirrored across a set of chains.

A record published on one chain is emitted to that chain's public log and
broadcast to every registered peer chain, where it is republished with its
origin chain preserved.  The public log is the only persistent artifact;
an external indexer turns it into queryable data.
"""

__version__ = "0.1.0"

from guestbook.core.guestbook import Guestbook
from guestbook.models.records import SignatureRecord

__all__ = ["Guestbook", "SignatureRecord", "__version__"]
