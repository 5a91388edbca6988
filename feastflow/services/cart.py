"""
Cart Service

Owns the ``cart`` and ``cart_items`` tables. Every operation is scoped to
the calling user's own cart.

Per user the cart moves through:
    no cart -> empty cart (restaurant unset) -> active cart (restaurant set,
    one or more items) -> empty cart again on a full clear.

A cart only ever holds items from one restaurant. Adding an item from a
different restaurant deletes the current contents first, without asking.

Concurrency:
    The multi-step writes (add, clear) run in a single transaction with the
    cart row locked (``SELECT ... FOR UPDATE`` on backends that support it).
    The unique (cart_id, menu_item_id) constraint backs up the merge logic:
    a duplicate insert from a concurrent add is rolled back and retried once,
    and the retry merges the quantities.
"""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.core.exceptions import NotFoundError, ValidationError
from feastflow.models import Cart, CartItem, utcnow
from feastflow.schemas import AddCartItemRequest

logger = logging.getLogger(__name__)


class CartService:
    """Single-restaurant cart operations for one request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def _find_cart(self, user_id: str, lock: bool = False) -> Optional[Cart]:
        query = select(Cart).where(Cart.user_id == user_id)
        if lock:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def _find_item(self, cart_id: str, menu_item_id: str) -> Optional[CartItem]:
        result = await self.db.execute(
            select(CartItem).where(
                CartItem.cart_id == cart_id,
                CartItem.menu_item_id == menu_item_id,
            )
        )
        return result.scalar_one_or_none()

    async def _require_cart(self, user_id: str, lock: bool = False) -> Cart:
        cart = await self._find_cart(user_id, lock=lock)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    async def _get_or_create_cart(self, user_id: str, lock: bool = False) -> Cart:
        """Resolve the user's cart, inserting an empty one if needed (no commit)."""
        cart = await self._find_cart(user_id, lock=lock)
        if cart is not None:
            return cart

        cart = Cart(user_id=user_id)
        self.db.add(cart)
        try:
            await self.db.flush()
        except IntegrityError:
            # Either a concurrent request created the cart first, or the
            # user no longer exists
            await self.db.rollback()
            cart = await self._find_cart(user_id, lock=lock)
            if cart is None:
                raise NotFoundError("User not found")
            return cart

        logger.debug(f"Created cart {cart.id} for user {user_id}")
        return cart

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    async def get_or_create_cart(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first access."""
        cart = await self._get_or_create_cart(user_id)
        await self.db.commit()
        return cart

    async def get_cart(self, user_id: str) -> tuple[Cart, list[CartItem]]:
        """
        Return the cart and its items, newest first.

        Creates the empty cart as a side effect when the user has none.
        """
        cart = await self.get_or_create_cart(user_id)
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.cart_id == cart.id)
            .order_by(CartItem.created_at.desc())
        )
        return cart, list(result.scalars().all())

    async def add_item(self, user_id: str, item: AddCartItemRequest) -> CartItem:
        """
        Add a menu item to the user's cart.

        Args:
            user_id: Owner of the cart
            item: Catalog snapshot and quantity to add

        Returns:
            The created or merged cart item row

        Raises:
            ValidationError: A required snapshot field is missing, the price is
                negative or the quantity is below one
        """
        self._validate_new_item(item)

        try:
            cart_item = await self._add_item_once(user_id, item)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(
                f"Concurrent insert of {item.menu_item_id} for user {user_id}, "
                f"retrying as a merge"
            )
            cart_item = await self._add_item_once(user_id, item)
            await self.db.commit()

        return cart_item

    async def _add_item_once(self, user_id: str, item: AddCartItemRequest) -> CartItem:
        cart = await self._get_or_create_cart(user_id, lock=True)

        if cart.restaurant_id and cart.restaurant_id != item.restaurant_id:
            await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
            logger.info(
                f"Cart {cart.id} switched restaurant "
                f"{cart.restaurant_id} -> {item.restaurant_id}, items cleared"
            )
            cart.restaurant_id = item.restaurant_id
        elif not cart.restaurant_id:
            cart.restaurant_id = item.restaurant_id

        existing = await self._find_item(cart.id, item.menu_item_id)
        if existing is not None:
            existing.quantity = existing.quantity + item.quantity
            existing.updated_at = utcnow()
            await self.db.flush()
            return existing

        cart_item = CartItem(
            cart_id=cart.id,
            menu_item_id=item.menu_item_id,
            menu_item_name=item.menu_item_name,
            menu_item_price=item.menu_item_price,
            menu_item_description=item.menu_item_description,
            menu_item_category=item.menu_item_category,
            restaurant_id=item.restaurant_id,
            restaurant_name=item.restaurant_name,
            quantity=item.quantity,
        )
        self.db.add(cart_item)
        await self.db.flush()
        return cart_item

    @staticmethod
    def _validate_new_item(item: AddCartItemRequest) -> None:
        required = (
            item.menu_item_id,
            item.menu_item_name,
            item.menu_item_price,
            item.restaurant_id,
            item.restaurant_name,
        )
        if any(value is None or value == "" for value in required):
            raise ValidationError("Missing required fields")
        if item.menu_item_price < 0:
            raise ValidationError("Invalid price")
        if item.quantity < 1:
            raise ValidationError("Quantity must be at least 1")

    async def update_item_quantity(
        self,
        user_id: str,
        menu_item_id: str,
        quantity: Optional[int],
    ) -> Optional[CartItem]:
        """
        Set an item's quantity.

        A quantity of 0 removes the item (a no-op when it is absent).

        Returns:
            The updated row, or None when the item was removed
        """
        if quantity is None or quantity < 0:
            raise ValidationError("Invalid quantity")

        cart = await self._require_cart(user_id)

        if quantity == 0:
            await self.db.execute(
                delete(CartItem).where(
                    CartItem.cart_id == cart.id,
                    CartItem.menu_item_id == menu_item_id,
                )
            )
            await self.db.commit()
            return None

        cart_item = await self._find_item(cart.id, menu_item_id)
        if cart_item is None:
            raise NotFoundError("Item not found in cart")

        cart_item.quantity = quantity
        cart_item.updated_at = utcnow()
        await self.db.commit()
        return cart_item

    async def remove_item(self, user_id: str, menu_item_id: str) -> None:
        cart = await self._require_cart(user_id)

        cart_item = await self._find_item(cart.id, menu_item_id)
        if cart_item is None:
            raise NotFoundError("Item not found in cart")

        await self.db.delete(cart_item)
        await self.db.commit()

    async def clear_cart(self, user_id: str) -> bool:
        """
        Delete every item and unset the restaurant in one transaction.

        Returns:
            False when the user had no cart (nothing to clear)
        """
        cart = await self._find_cart(user_id, lock=True)
        if cart is None:
            return False

        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        cart.restaurant_id = None
        await self.db.commit()

        logger.debug(f"Cleared cart {cart.id}")
        return True
