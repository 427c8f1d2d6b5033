from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PricedAction:
    code: str
    title: str
    price_sats: int
    free: bool = False


ACTIONS: dict[str, PricedAction] = {
    "post": PricedAction(code="post", title="📝 Пост", price_sats=1000),
    "comment": PricedAction(code="comment", title="💬 Комментарий", price_sats=100),
    "boost": PricedAction(code="boost", title="🚀 Буст", price_sats=5000),
    "bio": PricedAction(code="bio", title="🪪 Био", price_sats=0, free=True),
}
