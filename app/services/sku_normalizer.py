"""
SKU normalisation

The normalized SKU is the only join key between Shopify and the
sell-through sheet. Shopify variants often carry a variant-count suffix:

    "HAT-053-##"      -> "HAT-053"
    "CUS-0028   ##"   -> "CUS-0028"
    "50002"           -> "50002"
"""
import re
from typing import Any, Optional

# Optional whitespace, optional hyphen, one or more '#', anchored at the end
VARIANT_SUFFIX_RE = re.compile(r"\s*-?#+\s*$")


def normalize_sku(raw_sku: Any) -> Optional[str]:
    """Canonical join key for a raw SKU, or None when the SKU is empty"""
    if raw_sku is None:
        return None

    trimmed = str(raw_sku).strip()
    if not trimmed:
        return None

    # Repeat so stacked suffixes ("A-#-##") collapse in one call
    result = trimmed
    while True:
        stripped = VARIANT_SUFFIX_RE.sub("", result, count=1)
        if stripped == result or not stripped:
            break
        result = stripped

    # A SKU made only of suffix characters keeps its trimmed text ("##" -> "##")
    return result
