# services/signature_service.py
"""
Gateway signature codec.

Signing and verification share one canonical form:
1. Drop empty values (None or "") and the ``signature`` key itself
2. Sort the remaining keys
3. Join ``key=value`` pairs with ``&``; values percent-encoded, space as ``+``,
   escapes in uppercase hex
4. Append ``&passphrase=<encoded>`` when a passphrase is configured
5. MD5 of the resulting string, lowercase hex

The gateway computes the same digest on its side, so any change here breaks
every payment form and every notification.
"""
import hashlib
import hmac
from typing import Any, Mapping, Optional
from urllib.parse import quote

SIGNATURE_FIELD = "signature"

# Characters the gateway leaves unescaped.
_UNRESERVED = "-_.!~*'()"


def encode_value(value: Any) -> str:
     """Percent-encode a field value: UTF-8, uppercase hex, space as '+'."""
     return quote(str(value), safe=_UNRESERVED).replace("%20", "+")


def canonical_string(fields: Mapping[str, Any], passphrase: Optional[str] = None) -> str:
     """Build the string that is digested for ``fields``."""
     keys = sorted(
          k for k, v in fields.items()
          if k != SIGNATURE_FIELD and v is not None and v != ""
     )
     pairs = [f"{k}={encode_value(fields[k])}" for k in keys]
     if passphrase:
          pairs.append(f"passphrase={encode_value(passphrase)}")
     return "&".join(pairs)


def sign(fields: Mapping[str, Any], passphrase: Optional[str] = None) -> str:
     """
     Compute the gateway signature for a field map.

     Returns a 32-char lowercase hex string.
     """
     payload = canonical_string(fields, passphrase)
     return hashlib.md5(payload.encode("utf-8")).hexdigest()


def verify(
     fields: Mapping[str, Any],
     claimed_signature: Optional[str],
     passphrase: Optional[str] = None,
) -> bool:
     """
     Recompute the signature over ``fields`` and compare with the claimed one.

     The ``signature`` entry inside ``fields`` is ignored by the canonical form,
     so the full notification can be passed as-is.
     """
     if not claimed_signature:
          return False
     computed = sign(fields, passphrase)
     return hmac.compare_digest(computed.encode("ascii"), str(claimed_signature).encode("utf-8"))
