"""Document helpers shared by the store implementations."""

import copy
import os
import time

from typing import Any, Dict, Mapping


def generate_id() -> str:
    """Generates a new document ID.

    IDs are 24 hexadecimal characters: a 4 byte big-endian timestamp
    followed by 8 random bytes, so they sort roughly by creation time.
    """

    timestamp = int(time.time()) & 0xFFFFFFFF
    return timestamp.to_bytes(4, 'big').hex() + os.urandom(8).hex()


def apply_update(
    document: Mapping[str, Any],
    update: Mapping[str, Any],
) -> Dict[str, Any]:
    """Returns a copy of `document` with the fields of `update` set.

    Only the named fields change. A dotted key such as
    ``meaning.english`` sets a nested field, creating intermediate
    mappings as needed.

    Args:
        document: The existing document.
        update: Field path to new value.

    Returns:
        The updated copy.
    """

    updated = copy.deepcopy(dict(document))
    for key, value in update.items():
        *parents, leaf = str(key).split('.')
        target = updated
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = target[part] = {}
            target = child
        target[leaf] = copy.deepcopy(value)
    return updated
