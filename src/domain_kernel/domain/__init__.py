"""Domain layer — identities, value objects, entities, aggregates.

This package defines the modeling primitives that every bounded context
builds on.  Nothing here performs I/O; the repository contract is the
only seam towards storage.
"""
