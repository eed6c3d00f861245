"""
JSON API

Endpoints:
    - /api/cart: Cart contents and mutations
    - /api/selection: Service mode / delivery zone and the selection prompt
    - /api/checkout/summary: Totals and checkout guards
    - /api/recommendations: Meal-completion suggestions
    - /api/categories, /api/menu: Catalog
    - /api/orders: Place an order, order history and details
    - /api/auth: Sign-up, sign-in, sign-out, current user
    - /api/profile: Profile metadata and onboarding

Errors are returned as ``{"success": false, "error": "..."}`` by the
exception handlers registered in ``storefront.main``.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.config import get_settings
from storefront.core.exceptions import NotFoundError, StorefrontError
from storefront.dependencies import (
    get_auth,
    get_platform,
    get_session,
    require_user,
)
from storefront.models import ServiceMode
from storefront.schemas import (
    AuthResponse,
    AuthUser,
    CartItemAdd,
    CartLineRef,
    CartLineResponse,
    CartQuantityUpdate,
    CartResponse,
    CategoryRecord,
    CheckoutSummaryResponse,
    ErrorResponse,
    MenuItemRecord,
    OnboardingRequest,
    OrderDetailResponse,
    OrderPlacedResponse,
    OrderSummaryResponse,
    ProfileUpdate,
    RecommendationItem,
    RecommendationResponse,
    SelectionResponse,
    SelectionUpdate,
    SignInRequest,
    SignUpRequest,
    UserMetadata,
)
from storefront.services import catalog, orders, profile
from storefront.services.auth import AuthResult, BaseAuthProvider
from storefront.services.checkout import confirm_selection, evaluate_checkout
from storefront.services.platform import BaseDataPlatform
from storefront.services.recommendations import recommend
from storefront.state import CartStore, OrderSelectionStore, SessionState

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)


# =============================================================================
# RESPONSE BUILDERS
# =============================================================================

def cart_response(cart: CartStore) -> CartResponse:
    return CartResponse(
        lines=[
            CartLineResponse(
                product_id=line.product_id,
                variant_id=line.variant_id,
                product_name=line.product_name,
                variant_label=line.variant_label,
                unit_price=line.unit_price,
                quantity=line.quantity,
                line_total=line.line_total,
            )
            for line in cart.lines
        ],
        item_count=cart.item_count,
        total=cart.total,
    )


def selection_response(store: OrderSelectionStore) -> SelectionResponse:
    selection = store.selection
    return SelectionResponse(
        service_mode=selection.service_mode,
        delivery_zone=selection.delivery_zone,
        description=selection.description,
        is_complete=selection.is_complete,
        is_prompt_open=store.is_prompt_open,
        delivery_zones=get_settings().delivery_zones_list,
    )


def auth_response(result: AuthResult) -> AuthResponse:
    user = result.user
    return AuthResponse(
        success=result.success,
        user=user,
        needs_onboarding=bool(user and not user.user_metadata.is_onboarded),
        error=result.error_message,
    )


def _saved_address(session: SessionState) -> Optional[str]:
    return session.user.user_metadata.address if session.user else None


# =============================================================================
# CART
# =============================================================================

@router.get("/cart", response_model=CartResponse, tags=["Cart"])
async def get_cart(session: SessionState = Depends(get_session)) -> CartResponse:
    return cart_response(session.cart)


@router.post("/cart/items", response_model=CartResponse, tags=["Cart"])
async def add_cart_item(
    payload: CartItemAdd,
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> CartResponse:
    """
    Add units of a menu item.

    Name, size label and unit price are taken from the catalog, never from
    the request.
    """
    line = await catalog.resolve_cart_line(platform, payload.product_id, payload.variant_id)
    session.cart.add_or_increment(line, payload.quantity)
    return cart_response(session.cart)


@router.put("/cart/items", response_model=CartResponse, tags=["Cart"])
async def set_cart_quantity(
    payload: CartQuantityUpdate,
    session: SessionState = Depends(get_session),
) -> CartResponse:
    """Overwrite a line's quantity; 0 removes the line."""
    session.cart.set_quantity(payload.product_id, payload.variant_id, payload.quantity)
    return cart_response(session.cart)


@router.post("/cart/increment", response_model=CartResponse, tags=["Cart"])
async def increment_cart_item(
    payload: CartLineRef,
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> CartResponse:
    key = (payload.product_id, payload.variant_id)
    line = next((l for l in session.cart.lines if l.key == key), None)
    if line is None:
        line = await catalog.resolve_cart_line(platform, payload.product_id, payload.variant_id)
    session.cart.increment(line)
    return cart_response(session.cart)


@router.post("/cart/decrement", response_model=CartResponse, tags=["Cart"])
async def decrement_cart_item(
    payload: CartLineRef,
    session: SessionState = Depends(get_session),
) -> CartResponse:
    session.cart.decrement(payload.product_id, payload.variant_id)
    return cart_response(session.cart)


@router.post("/cart/remove", response_model=CartResponse, tags=["Cart"])
async def remove_cart_item(
    payload: CartLineRef,
    session: SessionState = Depends(get_session),
) -> CartResponse:
    session.cart.remove(payload.product_id, payload.variant_id)
    return cart_response(session.cart)


@router.delete("/cart", response_model=CartResponse, tags=["Cart"])
async def clear_cart(session: SessionState = Depends(get_session)) -> CartResponse:
    session.cart.clear()
    return cart_response(session.cart)


# =============================================================================
# ORDER SELECTION
# =============================================================================

@router.get("/selection", response_model=SelectionResponse, tags=["Selection"])
async def get_selection(session: SessionState = Depends(get_session)) -> SelectionResponse:
    return selection_response(session.selection)


@router.put("/selection", response_model=SelectionResponse, tags=["Selection"])
async def confirm_order_selection(
    payload: SelectionUpdate,
    session: SessionState = Depends(get_session),
) -> SelectionResponse:
    """Confirm the choice made in the selection prompt and close it."""
    confirm_selection(session.selection, payload.service_mode, payload.delivery_zone)
    return selection_response(session.selection)


@router.patch("/selection", response_model=SelectionResponse, tags=["Selection"])
async def update_order_selection(
    payload: SelectionUpdate,
    session: SessionState = Depends(get_session),
) -> SelectionResponse:
    """
    Change the service mode and/or the delivery zone.

    Switching away from delivery clears the zone; a zone is only accepted
    while the mode is delivery.
    """
    store = session.selection
    fields = payload.model_fields_set

    if "service_mode" in fields:
        store.set_service_mode(payload.service_mode)
    if "delivery_zone" in fields:
        zone = payload.delivery_zone
        if zone and zone not in get_settings().delivery_zones_list:
            raise StorefrontError(f"Sorry, we do not deliver to {zone} yet.")
        store.set_delivery_zone(zone)
    return selection_response(store)


@router.post("/selection/prompt", response_model=SelectionResponse, tags=["Selection"])
async def open_selection_prompt(session: SessionState = Depends(get_session)) -> SelectionResponse:
    session.selection.open_prompt()
    return selection_response(session.selection)


@router.delete("/selection/prompt", response_model=SelectionResponse, tags=["Selection"])
async def close_selection_prompt(session: SessionState = Depends(get_session)) -> SelectionResponse:
    session.selection.close_prompt()
    return selection_response(session.selection)


# =============================================================================
# CHECKOUT & RECOMMENDATIONS
# =============================================================================

@router.get("/checkout/summary", response_model=CheckoutSummaryResponse, tags=["Checkout"])
async def checkout_summary(session: SessionState = Depends(get_session)) -> CheckoutSummaryResponse:
    summary = evaluate_checkout(
        session.cart.total,
        session.selection.selection,
        _saved_address(session),
    )
    return CheckoutSummaryResponse(**summary.to_dict())


@router.get("/recommendations", response_model=RecommendationResponse, tags=["Checkout"])
async def recommendations(
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> RecommendationResponse:
    menu = await catalog.load_menu(platform, available_only=True)
    result = recommend(
        session.cart.lines,
        menu,
        is_delivery=session.selection.service_mode == ServiceMode.DELIVERY,
    )
    return RecommendationResponse(
        message=result.message,
        items=[
            RecommendationItem(
                menu_id=s.item.id,
                name=s.item.name,
                variant_id=s.variant_id,
                variant_label=s.variant_label,
                price=s.price,
                image_url=s.item.image_url,
            )
            for s in result.suggestions
        ],
    )


# =============================================================================
# CATALOG
# =============================================================================

@router.get("/categories", response_model=List[CategoryRecord], tags=["Catalog"])
async def list_categories(
    display: bool = Query(False, description="Merge sides/rolls and de-duplicate as on the home page"),
    platform: BaseDataPlatform = Depends(get_platform),
) -> List[CategoryRecord]:
    categories = await catalog.load_categories(platform)
    if display:
        categories = catalog.display_categories(categories)
    return categories


@router.get("/menu", response_model=List[MenuItemRecord], tags=["Catalog"])
async def list_menu(
    category_id: Optional[str] = Query(None),
    platform: BaseDataPlatform = Depends(get_platform),
) -> List[MenuItemRecord]:
    return await catalog.load_menu(platform, category_id)


# =============================================================================
# ORDERS
# =============================================================================

@router.post(
    "/orders",
    response_model=OrderPlacedResponse,
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Orders"],
)
async def create_order(
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> OrderPlacedResponse:
    """Place the visitor's cart as an order."""
    placed = await orders.place_order(session, platform)
    return OrderPlacedResponse(
        success=True,
        message="Order placed successfully!",
        order_id=placed.order.id,
        grand_total=placed.summary.grand_total,
    )


@router.get("/orders", response_model=List[OrderSummaryResponse], tags=["Orders"])
async def list_orders(
    user: AuthUser = Depends(require_user),
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> List[OrderSummaryResponse]:
    history = await orders.order_history(platform, user, session.access_token)
    return [orders.order_summary_response(order) for order in history]


@router.get("/orders/last", response_model=Optional[OrderSummaryResponse], tags=["Orders"])
async def get_last_order(
    user: AuthUser = Depends(require_user),
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> Optional[OrderSummaryResponse]:
    order = await orders.last_order(platform, user, session.access_token)
    return orders.order_summary_response(order) if order else None


@router.get("/orders/{order_id}", response_model=OrderDetailResponse, tags=["Orders"])
async def get_order(
    order_id: str,
    user: AuthUser = Depends(require_user),
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> OrderDetailResponse:
    details = await orders.order_details(platform, user, order_id, session.access_token)
    if details is None:
        raise NotFoundError(f"Order {order_id} not found")
    return orders.order_detail_response(details)


# =============================================================================
# AUTH
# =============================================================================

@router.post("/auth/signup", response_model=AuthResponse, tags=["Auth"])
async def sign_up(
    payload: SignUpRequest,
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> AuthResponse:
    result = await auth.sign_up(
        payload.email,
        payload.password,
        UserMetadata(full_name=payload.full_name),
    )
    if not result.success:
        raise StorefrontError(result.error_message or "Sign-up failed")
    if result.has_session:
        session.sign_in(result.access_token, result.user)
    return auth_response(result)


@router.post("/auth/signin", response_model=AuthResponse, tags=["Auth"])
async def sign_in(
    payload: SignInRequest,
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> AuthResponse:
    result = await auth.sign_in(payload.email, payload.password)
    if not result.has_session:
        raise StorefrontError(result.error_message or "Sign-in failed")
    session.sign_in(result.access_token, result.user)
    return auth_response(result)


@router.post("/auth/signout", tags=["Auth"])
async def sign_out(
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> dict[str, Any]:
    if session.access_token:
        await auth.sign_out(session.access_token)
    session.sign_out()
    return {"success": True}


@router.get("/auth/me", response_model=AuthResponse, tags=["Auth"])
async def current_user(session: SessionState = Depends(get_session)) -> AuthResponse:
    return auth_response(AuthResult(success=session.is_authenticated, user=session.user))


# =============================================================================
# PROFILE
# =============================================================================

@router.get("/profile", response_model=UserMetadata, tags=["Profile"])
async def get_profile(user: AuthUser = Depends(require_user)) -> UserMetadata:
    return user.user_metadata


@router.put("/profile", response_model=AuthResponse, tags=["Profile"])
async def update_profile(
    payload: ProfileUpdate,
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> AuthResponse:
    result = await profile.update_profile(session, auth, payload)
    if not result.success:
        raise StorefrontError(result.error_message or "Could not save your profile")
    return auth_response(result)


@router.post("/profile/onboarding", response_model=AuthResponse, tags=["Profile"])
async def complete_onboarding(
    payload: OnboardingRequest,
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> AuthResponse:
    result = await profile.update_profile(session, auth, payload)
    if not result.success:
        raise StorefrontError(result.error_message or "Could not save your details")
    return auth_response(result)
