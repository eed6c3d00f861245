"""
Server-rendered pages and their form actions.

Pages:
    - GET /: Categories, last order, service selection prompt
    - GET /menu: Menu (optionally one category) with size options
    - GET /cart: Cart, checkout summary and recommendations
    - GET /orders: Order history with status progress
    - GET /profile, /onboarding: Profile metadata forms
    - GET /auth: Sign-in / sign-up

Form posts answer with a 303 redirect; failures are shown as flash
messages on the next page.
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from storefront.core.config import get_settings
from storefront.core.exceptions import AuthRequiredError, StorefrontError
from storefront.dependencies import get_auth, get_platform, get_session
from storefront.models import ORDER_PROGRESSION, ServiceMode
from storefront.schemas import (
    CartLineRef,
    OnboardingRequest,
    ProfileUpdate,
    SelectionUpdate,
    SignInRequest,
    SignUpRequest,
    UserMetadata,
)
from storefront.services import catalog, orders, profile
from storefront.services.auth import BaseAuthProvider
from storefront.services.checkout import confirm_selection, evaluate_checkout, format_amount
from storefront.services.platform import BaseDataPlatform
from storefront.services.recommendations import recommend
from storefront.state import SessionState

logger = logging.getLogger(__name__)

router = APIRouter(include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))
templates.env.filters["money"] = format_amount


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=303)


def safe_next(target: Optional[str], default: str = "/") -> str:
    """Only same-site paths are followed after a form post."""
    if not target or not target.startswith("/"):
        return default
    # Browsers treat a backslash as a slash and drop tabs and newlines
    if any(ord(ch) < 0x20 for ch in target):
        return default
    parts = urlsplit(target.replace("\\", "/"))
    if parts.scheme or parts.netloc or parts.path.startswith("//"):
        return default
    return target


def sign_in_redirect(return_to: str) -> RedirectResponse:
    return redirect(f"/auth?returnTo={quote(return_to, safe='/')}")


def first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    return str(error.get("msg", "Invalid input")).removeprefix("Value error, ")


def render(
    request: Request,
    session: SessionState,
    name: str,
    **context,
) -> HTMLResponse:
    """Render a page with the context every template expects."""
    settings = get_settings()
    return templates.TemplateResponse(
        request,
        name,
        {
            "settings": settings,
            "session": session,
            "user": session.user,
            "cart": session.cart,
            "selection": session.selection,
            "service_modes": list(ServiceMode),
            "delivery_zones": settings.delivery_zones_list,
            "flash": session.pop_flash(),
            "current_path": request.url.path,
            **context,
        },
    )


# =============================================================================
# PAGES
# =============================================================================

@router.get("/", response_class=HTMLResponse)
async def home_page(
    request: Request,
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> HTMLResponse:
    categories = []
    latest = None
    try:
        categories = catalog.display_categories(
            await catalog.load_categories(platform),
            limit=catalog.HOME_CATEGORY_LIMIT,
        )
        if session.is_authenticated:
            latest = await orders.last_order(platform, session.user, session.access_token)
    except StorefrontError as e:
        session.add_flash(e.message)

    return render(
        request,
        session,
        "home.html",
        categories=[(c, catalog.category_image(c)) for c in categories],
        last_order=latest,
    )


@router.get("/menu", response_class=HTMLResponse)
async def menu_page(
    request: Request,
    category_id: Optional[str] = Query(None),
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> HTMLResponse:
    items = []
    try:
        items = await catalog.load_menu(platform, category_id)
    except StorefrontError as e:
        session.add_flash(e.message)

    return render(
        request,
        session,
        "menu.html",
        category_id=category_id,
        items=[(item, catalog.variant_options(item)) for item in items],
    )


@router.get("/cart", response_class=HTMLResponse)
async def cart_page(
    request: Request,
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> HTMLResponse:
    address = session.user.user_metadata.address if session.user else None
    summary = evaluate_checkout(session.cart.total, session.selection.selection, address)

    suggestions = None
    try:
        suggestions = recommend(
            session.cart.lines,
            await catalog.load_menu(platform, available_only=True),
            is_delivery=session.selection.service_mode == ServiceMode.DELIVERY,
        )
    except StorefrontError as e:
        logger.warning(f"Recommendations unavailable: {e.message}")

    return render(
        request,
        session,
        "cart.html",
        summary=summary,
        recommendations=suggestions,
        saved_address=address,
    )


@router.get("/orders", response_class=HTMLResponse)
async def orders_page(
    request: Request,
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
):
    if not session.is_authenticated:
        return sign_in_redirect("/orders")

    history = []
    try:
        for order in await orders.order_history(platform, session.user, session.access_token):
            items = await platform.list_order_items(order.id, access_token=session.access_token)
            history.append(orders.OrderDetails(order=order, items=items))
    except StorefrontError as e:
        session.add_flash(e.message)

    return render(
        request,
        session,
        "orders.html",
        orders=history,
        progression=ORDER_PROGRESSION,
        format_time=orders.format_order_time,
    )


@router.get("/profile", response_class=HTMLResponse)
async def profile_page(request: Request, session: SessionState = Depends(get_session)):
    if not session.is_authenticated:
        return sign_in_redirect("/profile")
    return render(request, session, "profile.html", metadata=session.user.user_metadata)


@router.get("/onboarding", response_class=HTMLResponse)
async def onboarding_page(
    request: Request,
    return_to: Optional[str] = Query(None, alias="returnTo"),
    session: SessionState = Depends(get_session),
):
    if not session.is_authenticated:
        return sign_in_redirect("/onboarding")
    return render(
        request,
        session,
        "onboarding.html",
        metadata=session.user.user_metadata,
        return_to=safe_next(return_to),
    )


@router.get("/auth", response_class=HTMLResponse)
async def auth_page(
    request: Request,
    return_to: Optional[str] = Query(None, alias="returnTo"),
    mode: str = Query("signin"),
    session: SessionState = Depends(get_session),
):
    if session.is_authenticated:
        return redirect(safe_next(return_to))
    return render(
        request,
        session,
        "auth.html",
        mode="signup" if mode == "signup" else "signin",
        return_to=safe_next(return_to),
    )


# =============================================================================
# CART ACTIONS
# =============================================================================

@router.post("/cart/add")
async def cart_add(
    product_id: str = Form(...),
    variant_id: Optional[str] = Form(None),
    next_url: Optional[str] = Form(None, alias="next"),
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> RedirectResponse:
    try:
        ref = CartLineRef(product_id=product_id, variant_id=variant_id)
        line = await catalog.resolve_cart_line(platform, ref.product_id, ref.variant_id)
        session.cart.add_or_increment(line)
    except ValidationError as e:
        session.add_flash(first_error(e))
    except StorefrontError as e:
        session.add_flash(e.message)
    return redirect(safe_next(next_url, "/menu"))


@router.post("/cart/decrement")
async def cart_decrement(
    product_id: str = Form(...),
    variant_id: Optional[str] = Form(None),
    next_url: Optional[str] = Form(None, alias="next"),
    session: SessionState = Depends(get_session),
) -> RedirectResponse:
    session.cart.decrement(product_id, variant_id or None)
    return redirect(safe_next(next_url, "/cart"))


@router.post("/cart/remove")
async def cart_remove(
    product_id: str = Form(...),
    variant_id: Optional[str] = Form(None),
    session: SessionState = Depends(get_session),
) -> RedirectResponse:
    session.cart.remove(product_id, variant_id or None)
    return redirect("/cart")


@router.post("/cart/clear")
async def cart_clear(session: SessionState = Depends(get_session)) -> RedirectResponse:
    session.cart.clear()
    return redirect("/cart")


@router.post("/cart/checkout")
async def cart_checkout(
    session: SessionState = Depends(get_session),
    platform: BaseDataPlatform = Depends(get_platform),
) -> RedirectResponse:
    try:
        placed = await orders.place_order(session, platform)
    except AuthRequiredError:
        return sign_in_redirect("/cart")
    except StorefrontError as e:
        session.add_flash(e.message)
        return redirect("/cart")

    session.add_flash(f"Order placed successfully! Order #{placed.order.id[:8]}")
    return redirect("/orders")


# =============================================================================
# SELECTION ACTIONS
# =============================================================================

@router.post("/selection")
async def selection_confirm(
    service_mode: Optional[str] = Form(None),
    delivery_zone: Optional[str] = Form(None),
    next_url: Optional[str] = Form(None, alias="next"),
    session: SessionState = Depends(get_session),
) -> RedirectResponse:
    try:
        update = SelectionUpdate(service_mode=service_mode, delivery_zone=delivery_zone)
        zone = update.delivery_zone if update.service_mode == ServiceMode.DELIVERY else None
        confirm_selection(session.selection, update.service_mode, zone)
    except ValidationError:
        session.add_flash("Please choose Delivery, Pick-up or Dine-in.")
    except StorefrontError as e:
        session.add_flash(e.message)
    return redirect(safe_next(next_url))


@router.post("/selection/change")
async def selection_change(
    next_url: Optional[str] = Form(None, alias="next"),
    session: SessionState = Depends(get_session),
) -> RedirectResponse:
    session.selection.open_prompt()
    return redirect(safe_next(next_url))


# =============================================================================
# AUTH ACTIONS
# =============================================================================

def _after_sign_in(session: SessionState, return_to: str) -> RedirectResponse:
    if not session.user.user_metadata.is_onboarded:
        return redirect(f"/onboarding?returnTo={quote(return_to, safe='/')}")
    return redirect(return_to)


@router.post("/auth/signin")
async def auth_sign_in(
    email: str = Form(...),
    password: str = Form(...),
    return_to: Optional[str] = Form(None, alias="returnTo"),
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> RedirectResponse:
    return_to = safe_next(return_to)
    back = f"/auth?returnTo={quote(return_to, safe='/')}"
    try:
        credentials = SignInRequest(email=email, password=password)
    except ValidationError as e:
        session.add_flash(first_error(e))
        return redirect(back)

    result = await auth.sign_in(credentials.email, credentials.password)
    if not result.has_session:
        session.add_flash(result.error_message or "Sign-in failed")
        return redirect(back)

    session.sign_in(result.access_token, result.user)
    return _after_sign_in(session, return_to)


@router.post("/auth/signup")
async def auth_sign_up(
    email: str = Form(...),
    password: str = Form(...),
    full_name: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None, alias="returnTo"),
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> RedirectResponse:
    return_to = safe_next(return_to)
    back = f"/auth?mode=signup&returnTo={quote(return_to, safe='/')}"
    try:
        details = SignUpRequest(email=email, password=password, full_name=full_name or None)
    except ValidationError as e:
        session.add_flash(first_error(e))
        return redirect(back)

    result = await auth.sign_up(
        details.email,
        details.password,
        UserMetadata(full_name=details.full_name),
    )
    if not result.success:
        session.add_flash(result.error_message or "Sign-up failed")
        return redirect(back)
    if not result.has_session:
        session.add_flash("Check your email to confirm your account, then sign in.")
        return redirect(f"/auth?returnTo={quote(return_to, safe='/')}")

    session.sign_in(result.access_token, result.user)
    return _after_sign_in(session, return_to)


@router.post("/auth/signout")
async def auth_sign_out(
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> RedirectResponse:
    if session.access_token:
        await auth.sign_out(session.access_token)
    session.sign_out()
    return redirect("/")


# =============================================================================
# PROFILE ACTIONS
# =============================================================================

@router.post("/profile")
async def profile_save(
    full_name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    next_url: Optional[str] = Form(None, alias="next"),
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> RedirectResponse:
    target = safe_next(next_url, "/profile")
    try:
        update = ProfileUpdate(full_name=full_name, phone=phone, address=address)
        result = await profile.update_profile(session, auth, update)
    except AuthRequiredError:
        return sign_in_redirect(target)
    except ValidationError as e:
        session.add_flash(first_error(e))
        return redirect(target)

    session.add_flash("Profile saved." if result.success else (result.error_message or "Could not save your profile"))
    return redirect(target)


@router.post("/onboarding")
async def onboarding_save(
    full_name: str = Form(""),
    phone: str = Form(""),
    address: Optional[str] = Form(None),
    return_to: Optional[str] = Form(None, alias="returnTo"),
    session: SessionState = Depends(get_session),
    auth: BaseAuthProvider = Depends(get_auth),
) -> RedirectResponse:
    return_to = safe_next(return_to)
    back = f"/onboarding?returnTo={quote(return_to, safe='/')}"
    try:
        details = OnboardingRequest(full_name=full_name, phone=phone, address=address)
        result = await profile.update_profile(session, auth, details)
    except AuthRequiredError:
        return sign_in_redirect("/onboarding")
    except ValidationError as e:
        session.add_flash(first_error(e))
        return redirect(back)

    if not result.success:
        session.add_flash(result.error_message or "Could not save your details")
        return redirect(back)
    return redirect(return_to)
