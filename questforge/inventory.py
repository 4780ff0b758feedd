"""Slot-based inventory used as the reward target.

Items stack up to their ``stack_max``; each stack takes one slot. An
insertion either fits entirely or changes nothing.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from .items import Item, ItemRegistry


@dataclass
class ItemStack:
    """Represents a stack of identical items."""
    item_id: str
    quantity: int = 1

    def can_stack_with(self, other_item_id: str, max_stack: int) -> bool:
        """Check if this stack can accept more of the given item."""
        return self.item_id == other_item_id and self.quantity < max_stack


class Inventory:
    """Player inventory with a fixed number of slots."""

    def __init__(self, item_registry: ItemRegistry, max_slots: int = 20):
        self.item_registry = item_registry
        self.max_slots = max_slots
        self.stacks: List[ItemStack] = []

    def free_slots(self) -> int:
        return self.max_slots - len(self.stacks)

    def find_stack(self, item_id: str) -> Optional[ItemStack]:
        """Find existing stack for item."""
        for stack in self.stacks:
            if stack.item_id == item_id:
                return stack
        return None

    def get_item_quantity(self, item_id: str) -> int:
        """Get total quantity of item in inventory."""
        return sum(s.quantity for s in self.stacks if s.item_id == item_id)

    def slots_needed(self, item: Item, quantity: int) -> int:
        """Number of new slots ``quantity`` more of ``item`` would take."""
        room = sum(item.stack_max - s.quantity for s in self.stacks if s.item_id == item.id)
        overflow = max(0, quantity - room)
        return -(-overflow // item.stack_max)

    def try_add_item(self, item: Union[Item, str], quantity: int = 1) -> bool:
        """Add items if they all fit. Returns True if successful."""
        if isinstance(item, str):
            item = self.item_registry.get_item(item)
        if item is None or quantity <= 0:
            return False
        if self.slots_needed(item, quantity) > self.free_slots():
            return False

        remaining = quantity
        # Fill existing stacks first
        for stack in self.stacks:
            if remaining <= 0:
                break
            if stack.can_stack_with(item.id, item.stack_max):
                can_add = min(remaining, item.stack_max - stack.quantity)
                stack.quantity += can_add
                remaining -= can_add

        while remaining > 0:
            new_stack_size = min(remaining, item.stack_max)
            self.stacks.append(ItemStack(item.id, new_stack_size))
            remaining -= new_stack_size
        return True

    def add(self, item_id: str, quantity: int = 1) -> bool:
        """Add items by id. Returns True if successful."""
        return self.try_add_item(item_id, quantity)

    def remove(self, item_id: str, quantity: int = 1) -> bool:
        """Remove items from inventory. Returns True if successful."""
        if self.get_item_quantity(item_id) < quantity:
            return False

        remaining = quantity
        for stack in self.stacks:
            if stack.item_id == item_id and remaining > 0:
                can_remove = min(remaining, stack.quantity)
                stack.quantity -= can_remove
                remaining -= can_remove

        self.stacks = [s for s in self.stacks if s.quantity > 0]
        return True

    def list_items(self) -> List[Tuple[str, int]]:
        """List all items as (item_id, quantity)."""
        return [(s.item_id, s.quantity) for s in self.stacks]
