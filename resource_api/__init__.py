"""
Pluggable REST resource controller.

A resource is a logical table of JSON records exposed over HTTP with
create/list/show/update/replace/delete semantics. Storage, sessions and
password hashing are swappable adapters (see `storage/` and `auth/`).
"""

__version__ = "0.1.0"
