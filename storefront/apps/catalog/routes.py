"""HTTP routes for the product catalog."""

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from storefront.providers import get_catalog_service

from .domain import CatalogService
from .schemas import ProductOut, SeedProductOut

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(catalog: CatalogService = Depends(get_catalog_service)):
    return [ProductOut.from_domain(p) for p in catalog.list_products()]


@router.post("/init", response_model=SeedProductOut)
def init_products(catalog: CatalogService = Depends(get_catalog_service)):
    """Seed the demo product unless the catalog already has one.

    Returns 201 when a product was created, 200 with the first existing
    product otherwise.
    """
    product, created = catalog.seed_demo_product()
    body = SeedProductOut(
        message="Initial product created successfully" if created else "Using existing product",
        product=ProductOut.from_domain(product),
    )
    return JSONResponse(body.model_dump(mode="json", by_alias=True), status_code=201 if created else 200)


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    return ProductOut.from_domain(catalog.get_product(product_id))
