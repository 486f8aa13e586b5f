"""
Server-side cache of list responses, keyed by entity and scope.

Keys look like ``bills:all`` or ``bills:stall:7``. Every key written for an
entity is remembered in a small index so a mutation can drop the whole
entity (``invalidate('bills')``) or just one scope of it.
"""
from django.conf import settings
from django.core.cache import cache

INDEX_PREFIX = 'collection-index'

# Collections whose contents are derived from another one.
DEPENDENTS = {
    'stalls': ('products', 'bills', 'payments', 'sales_returns', 'sales_summary'),
    'products': (),
    'bills': ('sales_returns', 'sales_summary', 'accounts'),
    'sales_returns': ('accounts',),
    'payments': ('accounts', 'stalls'),
    'registrations': ('accounts',),
    'panchayaths': ('wards', 'stalls'),
    'wards': ('stalls',),
    'food_options': (),
    'stall_enquiry_fields': (),
    'programs': (),
    'team': (),
}


def collection_key(entity, *scope):
    parts = [str(p) for p in scope if p not in (None, '')]
    return f"{entity}:{':'.join(parts) if parts else 'all'}"


def _index_key(entity):
    return f"{INDEX_PREFIX}:{entity}"


def get_or_fetch(entity, fetch, *scope):
    key = collection_key(entity, *scope)
    cached = cache.get(key)
    if cached is not None:
        return cached

    rows = fetch()
    cache.set(key, rows, settings.COLLECTION_CACHE_TIMEOUT)
    known = cache.get(_index_key(entity)) or set()
    known.add(key)
    cache.set(_index_key(entity), known, None)
    return rows


def _drop_entity(entity, scope=None):
    known = cache.get(_index_key(entity)) or set()
    if scope:
        prefix = collection_key(entity, *scope)
        targets = {k for k in known if k == prefix or k.startswith(prefix + ':')}
        # unscoped lists also contain the scoped rows
        targets |= {k for k in known if k == collection_key(entity)}
    else:
        targets = set(known)
    cache.delete_many(list(targets))
    cache.set(_index_key(entity), known - targets, None)


def invalidate(*entities, scope=None):
    """Drop the given collections and everything derived from them."""
    seen = set()
    pending = list(entities)
    while pending:
        entity = pending.pop()
        if entity in seen:
            continue
        seen.add(entity)
        _drop_entity(entity, scope)
        pending.extend(DEPENDENTS.get(entity, ()))
    return seen
