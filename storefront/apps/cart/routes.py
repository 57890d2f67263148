"""HTTP routes for the per-user cart.

``userId`` comes from the path or the body and is trusted as-is.
"""

from fastapi import APIRouter, Depends

from storefront.providers import get_cart_service

from .domain import CartService
from .schemas import AddToCartIn, CartOut, UpdateCartItemIn

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/{user_id}", response_model=CartOut)
def get_cart(user_id: str, carts: CartService = Depends(get_cart_service)):
    return CartOut.from_resolved(carts.get(user_id))


@router.post("/add", response_model=CartOut)
def add_to_cart(req: AddToCartIn, carts: CartService = Depends(get_cart_service)):
    return CartOut.from_resolved(carts.add(req.user_id, req.product_id, req.quantity, req.variant))


@router.put("/update", response_model=CartOut)
def update_cart_item(req: UpdateCartItemIn, carts: CartService = Depends(get_cart_service)):
    return CartOut.from_resolved(carts.update_quantity(req.user_id, req.item_id, req.quantity))


@router.delete("/{user_id}/items/{item_id}", response_model=CartOut)
def remove_cart_item(user_id: str, item_id: str, carts: CartService = Depends(get_cart_service)):
    return CartOut.from_resolved(carts.remove_item(user_id, item_id))


@router.delete("/{user_id}", response_model=CartOut)
def clear_cart(user_id: str, carts: CartService = Depends(get_cart_service)):
    return CartOut.from_domain(carts.clear(user_id))
