"""Cart endpoints. Every route acts on the caller's own cart."""

from fastapi import APIRouter, Depends

from feastflow.core.security import TokenIdentity
from feastflow.dependencies import get_cart_service, require_any_role
from feastflow.schemas import (
    AddCartItemRequest,
    CartData,
    CartEnvelope,
    CartItemEnvelope,
    CartItemResponse,
    CartResponse,
    Envelope,
    ErrorResponse,
    UpdateCartItemRequest,
)
from feastflow.services.cart import CartService

router = APIRouter(
    prefix="/api/cart",
    tags=["Cart"],
    responses={401: {"model": ErrorResponse}},
)


@router.get("", response_model=CartEnvelope, summary="Get the caller's cart")
async def get_cart(
    identity: TokenIdentity = Depends(require_any_role),
    service: CartService = Depends(get_cart_service),
) -> CartEnvelope:
    """Returns the cart with its items, newest first. Creates an empty cart on first access."""
    cart, items = await service.get_cart(identity.id)
    return CartEnvelope(
        success=True,
        data=CartData(
            cart=CartResponse.model_validate(cart),
            items=[CartItemResponse.model_validate(item) for item in items],
        ),
    )


@router.post(
    "/items",
    response_model=CartItemEnvelope,
    responses={400: {"model": ErrorResponse}},
    summary="Add an item to the cart",
)
async def add_item(
    body: AddCartItemRequest,
    identity: TokenIdentity = Depends(require_any_role),
    service: CartService = Depends(get_cart_service),
) -> CartItemEnvelope:
    """
    Adding an item from another restaurant empties the cart first.
    Adding an item already in the cart increases its quantity.
    """
    item = await service.add_item(identity.id, body)
    return CartItemEnvelope(
        success=True,
        message="Item added to cart",
        data=CartItemResponse.model_validate(item),
    )


@router.put(
    "/items/{item_id}",
    response_model=CartItemEnvelope,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Set an item's quantity (0 removes it)",
)
async def update_item(
    item_id: str,
    body: UpdateCartItemRequest,
    identity: TokenIdentity = Depends(require_any_role),
    service: CartService = Depends(get_cart_service),
) -> CartItemEnvelope:
    item = await service.update_item_quantity(identity.id, item_id, body.quantity)
    if item is None:
        return CartItemEnvelope(success=True, message="Item removed from cart")
    return CartItemEnvelope(
        success=True,
        message="Cart updated",
        data=CartItemResponse.model_validate(item),
    )


@router.delete(
    "/items/{item_id}",
    response_model=Envelope,
    responses={404: {"model": ErrorResponse}},
    summary="Remove an item from the cart",
)
async def remove_item(
    item_id: str,
    identity: TokenIdentity = Depends(require_any_role),
    service: CartService = Depends(get_cart_service),
) -> Envelope:
    await service.remove_item(identity.id, item_id)
    return Envelope(success=True, message="Item removed from cart")


@router.delete("", response_model=Envelope, summary="Empty the cart")
async def clear_cart(
    identity: TokenIdentity = Depends(require_any_role),
    service: CartService = Depends(get_cart_service),
) -> Envelope:
    cleared = await service.clear_cart(identity.id)
    return Envelope(success=True, message="Cart cleared" if cleared else "Cart already empty")
