"""Reward resolution.

Turns a Reward into grants against the player and the inventory:
experience first, then currency, then each item in turn. A failed item
insertion stops the resolution and reports failure; experience and
currency already granted are kept. A GrantReceipt records what went
through so that a later retry only grants what is still missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import config
from .model import Reward

logger = logging.getLogger(__name__)


class Player(Protocol):
    def get_level(self) -> int: ...

    def grant_experience(self, amount: int) -> None: ...

    def grant_currency(self, amount: int) -> None: ...


class Inventory(Protocol):
    def try_add_item(self, item: Any, quantity: int) -> bool: ...


class ItemCatalog(Protocol):
    def create(self, item_id: str) -> Optional[Any]: ...


@dataclass
class GrantReceipt:
    """What has already been granted for one reward."""
    experience: bool = False
    currency: bool = False
    items: Dict[str, int] = field(default_factory=dict)
    compensation: int = 0  # currency paid for items that could not be created

    def is_complete(self, reward: Reward) -> bool:
        return (
            self.experience
            and self.currency
            and all(self.items.get(item_id, 0) >= qty for item_id, qty in reward.items.items())
        )

    def is_started(self) -> bool:
        return self.experience or self.currency or bool(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "experience": self.experience,
            "currency": self.currency,
            "items": dict(self.items),
            "compensation": self.compensation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GrantReceipt":
        """Parse a saved receipt. Raises TypeError/ValueError on malformed data."""
        return cls(
            experience=bool(data.get("experience", False)),
            currency=bool(data.get("currency", False)),
            items={str(k): int(v) for k, v in data.get("items", {}).items()},
            compensation=int(data.get("compensation", 0)),
        )


class RewardResolver:
    """Grants rewards through the player and inventory collaborators.

    Args:
        catalog: Creates item objects from reward item ids. Without a
            catalog the raw item id is handed to the inventory.
        fallback_currency: Currency granted instead of an item the catalog
            cannot create (default: config.ITEM_FALLBACK_CURRENCY)
    """

    def __init__(self, catalog: Optional[ItemCatalog] = None, fallback_currency: Optional[int] = None):
        self.catalog = catalog
        self.fallback_currency = config.ITEM_FALLBACK_CURRENCY if fallback_currency is None else fallback_currency

    def grant(
        self,
        reward: Reward,
        player: Player,
        inventory: Optional[Inventory],
        receipt: Optional[GrantReceipt] = None,
    ) -> bool:
        """Grant a reward.

        Args:
            reward: Reward to grant
            player: Receives experience and currency
            inventory: Receives items (may be None for item-less rewards)
            receipt: Progress of earlier attempts; updated in place

        Returns:
            True if everything has been granted, False if an item did not fit
        """
        if receipt is None:
            receipt = GrantReceipt()

        if not receipt.experience:
            if reward.experience > 0:
                player.grant_experience(reward.experience)
            receipt.experience = True

        if not receipt.currency:
            if reward.currency > 0:
                player.grant_currency(reward.currency)
            receipt.currency = True

        for item_id, quantity in reward.items.items():
            if receipt.items.get(item_id, 0) >= quantity:
                continue
            if not self._grant_item(item_id, quantity, player, inventory, receipt):
                return False
        return True

    def _grant_item(
        self,
        item_id: str,
        quantity: int,
        player: Player,
        inventory: Optional[Inventory],
        receipt: GrantReceipt,
    ) -> bool:
        item: Any = item_id
        if self.catalog is not None:
            item = self.catalog.create(item_id)
            if item is None:
                logger.warning(f"Reward item {item_id} cannot be created, granting {self.fallback_currency} currency instead")
                if self.fallback_currency > 0:
                    player.grant_currency(self.fallback_currency)
                receipt.compensation += self.fallback_currency
                receipt.items[item_id] = quantity
                return True

        if inventory is None or not inventory.try_add_item(item, quantity):
            logger.info(f"No inventory space for reward item {item_id} x{quantity}")
            return False
        receipt.items[item_id] = quantity
        return True
