"""Domain layer: value objects, aggregates and their events.

Nothing here performs I/O or logs.  Expected business failures come back
as ``Result`` values; only caller bugs raise.
"""
