import re
from .equivalents import EQUIVALENT_COLUMNS

def normalize(col):
    """Normalize column names: lowercase, hyphens/whitespace to underscores, trim, drop punctuation."""
    text = str(col).strip().lower()
    if text.startswith("unnamed") or text in ("", "nan"):
        return ""
    text = re.sub(r'[\s\-]+', '_', text)        # hyphens and whitespace (incl. newlines)
    text = re.sub(r'[^a-z0-9_]', '', text)      # drop punctuation
    text = re.sub(r'_+', '_', text).strip('_')  # collapse duplicate underscores

    return text

def _synonym_lookup():
    lookup = {}
    for canonical, equivalents in EQUIVALENT_COLUMNS.items():
        for eq in equivalents:
            lookup[normalize(eq)] = canonical
    return lookup

def _unique(name, used):
    candidate, suffix = name, 2
    while candidate in used:
        candidate = f"{name}_{suffix}"
        suffix += 1
    return candidate

def map_equivalent_columns(columns):
    """
    Map messy sheet columns to standardized field names.

    Every non-blank header gets a distinct target. A header that already is a
    canonical name claims it first; a synonym only takes a canonical name
    nobody has claimed, otherwise it keeps its own normalized name.
    """
    columns = list(columns)
    normalized = {col: normalize(col) for col in columns}
    synonyms = _synonym_lookup()

    mapping = {}
    used = set()
    for col in columns:
        norm = normalized[col]
        if norm in EQUIVALENT_COLUMNS and norm not in used:
            mapping[col] = norm
            used.add(norm)

    for col in columns:
        if col in mapping:
            continue
        norm = normalized[col]
        if not norm:
            mapping[col] = ""
            continue
        target = synonyms.get(norm, norm)
        if target in used:
            target = _unique(norm, used)
        mapping[col] = target
        used.add(target)
    return mapping
