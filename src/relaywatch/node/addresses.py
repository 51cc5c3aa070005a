"""
Multiaddress trimming

A node can report the same listening endpoint in several encodings: with or
without its own ``/p2p/<peer-id>`` suffix, with a trailing slash, as an
address object instead of text. Trimming reduces each to its canonical text
form and drops duplicates, keeping first-seen order.
"""

import re
from typing import Any, Iterable, List

_PEER_SUFFIX = re.compile(r"/(?:p2p|ipfs)/[^/]+$")
_REPEATED_SLASH = re.compile(r"/{2,}")


def trim_address(address: Any) -> str:
    """
    Canonical text form of one multiaddress.

    >>> trim_address("/ip4/1.2.3.4/tcp/4001/p2p/QmNode")
    '/ip4/1.2.3.4/tcp/4001'
    """
    text = _REPEATED_SLASH.sub("/", str(address).strip())
    text = text.rstrip("/")
    # a bare "/p2p/<id>" is a peer reference, not a listening address
    trimmed = _PEER_SUFFIX.sub("", text)
    return trimmed or text


def trim_addresses(addresses: Iterable[Any]) -> List[str]:
    result: List[str] = []
    seen = set()
    for address in addresses:
        text = trim_address(address)
        if not text or text in seen:
            continue
        seen.add(text)
        result.append(text)
    return result
