from __future__ import annotations

from typing import Any, Iterable, Mapping


def normalize_row(row: Mapping[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    """
    Map a store row onto canonical field names, ignoring column-name case.

    The remote store does not always echo the declared casing
    (businessName / businessname / BUSINESSNAME).
    """
    lowered = {str(k).lower(): v for k, v in row.items()}
    out: dict[str, Any] = {}
    for f in fields:
        if f in row:
            out[f] = row[f]
        else:
            out[f] = lowered.get(f.lower())
    return out
