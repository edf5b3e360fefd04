"""Bridges to the external collaborators: messaging transport and native value.

The guestbook depends only on the ``MessagingTransport`` and ``FundsPort``
protocols.  The local implementations here back tests, the in-process mesh
and the CLI demo.
"""
