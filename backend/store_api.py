from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Request

import cart
import catalog
from checkout import EmptyCartError, finalize_order
from config_store import get_store_config
from payments import PaymentNotConfigured, PaymentProviderError, PayPalAdapter, StripeAdapter
from schemas import (
    AmountIn,
    CaptureOut,
    CartLine,
    CartProductIn,
    FinalizeOrderIn,
    FinalizeOrderOut,
    PayPalCaptureIn,
    PayPalConfigOut,
    PayPalOrderOut,
    ProductOut,
    StoreConfig,
    StripeConfigOut,
    StripeConfirmIn,
    StripeIntentOut,
    SuccessOut,
)

router = APIRouter(prefix="/api")


def get_stripe(config: StoreConfig = Depends(get_store_config)) -> StripeAdapter:
    return StripeAdapter(config)


def get_paypal(request: Request, config: StoreConfig = Depends(get_store_config)) -> PayPalAdapter:
    return PayPalAdapter(config, request.app.state.settings.PAYPAL_API_BASE)


async def call_provider(coro):
    try:
        return await coro
    except PaymentNotConfigured as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentProviderError as e:
        raise HTTPException(status_code=500, detail=str(e))


# Products

@router.get("/products", response_model=list[ProductOut])
async def list_products():
    return await catalog.list_products()


# Cart

@router.get("/cart", response_model=list[CartLine])
async def get_cart(request: Request):
    return await cart.populate(request.session)


@router.post("/cart/add", response_model=SuccessOut)
async def add_to_cart(payload: CartProductIn, request: Request):
    if await catalog.get_product(payload.product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    cart.add_item(request.session, payload.product_id)
    return SuccessOut()


@router.post("/cart/remove", response_model=SuccessOut)
async def remove_from_cart(payload: CartProductIn, request: Request):
    cart.remove_item(request.session, payload.product_id)
    return SuccessOut()


@router.post("/cart/clear", response_model=SuccessOut)
async def clear_cart(request: Request):
    cart.clear(request.session)
    return SuccessOut()


# PayPal

@router.get("/paypal/config", response_model=PayPalConfigOut)
async def paypal_config(paypal: PayPalAdapter = Depends(get_paypal)):
    return PayPalConfigOut(client_id=paypal.client_key())


@router.post("/paypal/create-order", response_model=PayPalOrderOut)
async def paypal_create_order(payload: AmountIn, paypal: PayPalAdapter = Depends(get_paypal)):
    order = await call_provider(paypal.create(payload.total))
    return PayPalOrderOut(id=order["id"])


@router.post("/paypal/capture-order", response_model=CaptureOut)
async def paypal_capture_order(payload: PayPalCaptureIn, paypal: PayPalAdapter = Depends(get_paypal)):
    result = await call_provider(paypal.capture(payload.order_id))
    return CaptureOut(status=result["status"])


# Stripe

@router.get("/stripe/config", response_model=StripeConfigOut)
async def stripe_config(stripe: StripeAdapter = Depends(get_stripe)):
    return StripeConfigOut(publishable_key=stripe.client_key())


@router.post("/stripe/create-intent", response_model=StripeIntentOut)
async def stripe_create_intent(payload: AmountIn, stripe: StripeAdapter = Depends(get_stripe)):
    intent = await call_provider(stripe.create(payload.total))
    return StripeIntentOut(client_secret=intent["client_secret"], id=intent["id"])


@router.post("/stripe/confirm-intent", response_model=CaptureOut)
async def stripe_confirm_intent(payload: StripeConfirmIn, stripe: StripeAdapter = Depends(get_stripe)):
    result = await call_provider(stripe.capture(payload.payment_intent_id))
    return CaptureOut(status=result["status"])


# Checkout

@router.post("/finalize-order", response_model=FinalizeOrderOut)
async def finalize(
    payload: FinalizeOrderIn,
    request: Request,
    config: StoreConfig = Depends(get_store_config),
):
    try:
        order = await finalize_order(request.session, payload, config, request.app.state.mailer)
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FinalizeOrderOut(order_id=order["id"])
