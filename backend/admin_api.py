from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

import auth
import catalog
import images
from config_store import ConfigProvider, get_config_provider
from database import delete_document, get_document, get_documents, update_document
from checkout import ORDER_COLLECTION
from logging_config import get_logger
from schemas import (
    ChangePasswordIn,
    ConfigUpdate,
    LoginIn,
    LoginOut,
    OrderOut,
    OrderStatusIn,
    Product,
    ProductOut,
    StoreConfig,
    SuccessOut,
)

logger = get_logger("admin")

# Session endpoints live outside /api, as the admin page posts to /admin/*
session_router = APIRouter(prefix="/admin")
router = APIRouter(prefix="/api/admin", dependencies=[Depends(auth.require_admin)])


# Authentication

@session_router.post("/login", response_model=LoginOut)
async def login(payload: LoginIn, request: Request, provider: ConfigProvider = Depends(get_config_provider)):
    first_time = await auth.login(provider, payload.password)
    request.session[auth.ADMIN_SESSION_KEY] = True
    logger.info("admin_logged_in", first_time=first_time)
    return LoginOut(first_time=first_time)


@session_router.post("/logout", response_model=SuccessOut)
async def logout(request: Request):
    request.session.pop(auth.ADMIN_SESSION_KEY, None)
    return SuccessOut()


@session_router.post("/change-password", response_model=SuccessOut, dependencies=[Depends(auth.require_admin)])
async def change_password(payload: ChangePasswordIn, provider: ConfigProvider = Depends(get_config_provider)):
    await auth.change_password(provider, payload.current, payload.new_password)
    return SuccessOut()


# Orders

@router.get("/orders", response_model=list[OrderOut])
async def list_orders():
    return await get_documents(ORDER_COLLECTION, sort=[("created_at", -1)])


@router.get("/orders/{order_id}", response_model=OrderOut)
async def get_order(order_id: str):
    order = await get_document(ORDER_COLLECTION, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.put("/orders/{order_id}", response_model=SuccessOut)
async def update_order_status(order_id: str, payload: OrderStatusIn):
    if not await update_document(ORDER_COLLECTION, order_id, {"status": payload.status}):
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("order_status_updated", order_id=order_id, status=payload.status)
    return SuccessOut()


@router.delete("/orders/{order_id}", response_model=SuccessOut)
async def delete_order(order_id: str):
    if not await delete_document(ORDER_COLLECTION, order_id):
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("order_deleted", order_id=order_id)
    return SuccessOut()


# Products

@router.get("/products", response_model=list[ProductOut])
async def list_products():
    return await catalog.list_products()


@router.post("/products", response_model=ProductOut)
async def create_product(
    name: str = Form(...),
    price: str = Form(...),
    description: str = Form(""),
    category: str = Form(""),
    icon: str = Form(""),
    message: str = Form(""),
    image_url: str = Form(""),
    image: Optional[UploadFile] = File(None),
):
    try:
        product_price = catalog.coerce_price(price)
    except ValueError:
        raise HTTPException(status_code=400, detail="Price must be a number")

    if image is not None and image.filename:
        try:
            image_url = await images.upload_image(image.file)
        except images.ImageHostNotConfigured as e:
            raise HTTPException(status_code=400, detail=str(e))
        except images.ImageUploadError as e:
            raise HTTPException(status_code=500, detail=str(e))
        finally:
            await image.close()

    product = Product(
        name=name,
        description=description,
        category=category,
        icon=icon,
        price=product_price,
        image=image_url,
        message=message,
    )
    return await catalog.create_product(product)


@router.delete("/products/{product_id}", response_model=SuccessOut)
async def delete_product(product_id: str):
    if not await catalog.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return SuccessOut()


# Config

@router.get("/config", response_model=StoreConfig)
async def read_config(provider: ConfigProvider = Depends(get_config_provider)):
    return await provider.get()


@router.put("/config", response_model=StoreConfig)
async def write_config(payload: ConfigUpdate, provider: ConfigProvider = Depends(get_config_provider)):
    return await provider.update(payload.model_dump(exclude_unset=True))
