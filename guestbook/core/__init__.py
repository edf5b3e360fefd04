"""Guestbook core: registry, record log, fee quoting, broadcast, inbound, replay."""
