# services/price_service.py
"""
Price authority: the only trusted source for what a product costs.
"""
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from exceptions import UnknownProductError


class PriceAuthority:
     """Read-only product code -> price lookup."""

     def __init__(self, prices: Mapping[str, Decimal]):
          self._prices = MappingProxyType(
               {sku: Decimal(price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) for sku, price in prices.items()}
          )

     @property
     def prices(self) -> Mapping[str, Decimal]:
          return self._prices

     def __contains__(self, sku: object) -> bool:
          return sku in self._prices

     def price_of(self, sku: Optional[str]) -> Optional[Decimal]:
          """Return the canonical price, or None for an unlisted code."""
          if not sku:
               return None
          return self._prices.get(sku)

     def require_price(self, sku: Optional[str]) -> Decimal:
          """
          Return the canonical price.

          Raises:
               UnknownProductError: If the code is not in the table
          """
          price = self.price_of(sku)
          if price is None:
               raise UnknownProductError(sku)
          return price
