"""
Record shapers: pure transforms applied to records on the way in (before
persistence) and on the way out (before responding).

Shapers may run more than once per request, so they must not mutate their
argument or touch any adapter.
"""

from __future__ import annotations

from typing import Any, Iterable

Record = dict[str, Any]


class RecordShaper:
    """Identity in both directions. Subclass to filter or transform."""

    def inbound(self, record: Record) -> Record:
        return dict(record)

    def outbound(self, record: Record) -> Record:
        return dict(record)


class FieldFilter(RecordShaper):
    def __init__(self, *, drop_inbound: Iterable[str] = (), drop_outbound: Iterable[str] = ()) -> None:
        self.drop_inbound = frozenset(drop_inbound)
        self.drop_outbound = frozenset(drop_outbound)

    def inbound(self, record: Record) -> Record:
        return {k: v for k, v in record.items() if k not in self.drop_inbound}

    def outbound(self, record: Record) -> Record:
        return {k: v for k, v in record.items() if k not in self.drop_outbound}
