"""Ordering bounded context built on the kernel primitives.

``Order`` is the aggregate root; ``LineItem`` entities live inside it and
are keyed by ``ProductId``.  The running total is a derived field kept in
step with the items by every mutation.
"""
