"""FastAPI mock vendor feed for testing the import pipeline."""

import math
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header, HTTPException, Query


COLORS = ["gold", "silver", "rose"]
CATEGORIES = ["Rings", "Necklaces", "Bracelets", "Earrings"]


def build_catalog(total: int, prefix: str = "MK") -> List[Dict[str, Any]]:
    """
    Build a deterministic product catalog.

    Records use vendor-style field names: a nested details object, string
    prices with a currency sign, a delimited category list and an image
    filename, so every mapping feature has something to work on.
    """
    catalog = []
    for number in range(1, total + 1):
        catalog.append({
            "sku": f"{prefix}-{number:04d}",
            "name": f"Product {number}",
            "description": f"Description of product {number}",
            "price": f"${10 + number}.50",
            "stock": number % 4,
            "categories": f"{CATEGORIES[number % len(CATEGORIES)]}; Jewelry",
            "details": {"color": COLORS[number % len(COLORS)], "weight": f"{number}g"},
            "image": f"product-{number}.jpg",
        })
    return catalog


def create_mock_feed(
    name: str = "mock",
    pages: int = 3,
    page_size: int = 20,
    total: Optional[int] = None,
    mode: str = "page",
    fail_page: Optional[int] = None,
    token: Optional[str] = None,
    envelope_key: str = "products",
) -> FastAPI:
    """
    Create a FastAPI mock vendor feed.

    Args:
        name: Feed name reported by /health
        pages: Page count for the default catalog size
        page_size: Records per page (page mode default and offset mode cap)
        total: Catalog size; defaults to pages * page_size
        mode: "page" (page/per_page params), "offset" (offset/limit params)
            or "none" (the whole catalog in one response)
        fail_page: 1-based request number answered with a 500
        token: Bearer token required on every request when set
        envelope_key: Envelope key holding the record array

    Returns:
        FastAPI application
    """
    if mode not in ("page", "offset", "none"):
        raise ValueError(f"Unknown mock feed mode: {mode}")

    app = FastAPI(title=f"Mock Vendor Feed - {name}")
    catalog = build_catalog(pages * page_size if total is None else total)

    def check_request(authorization: Optional[str], request_number: int) -> None:
        if token is not None and authorization != f"Bearer {token}":
            raise HTTPException(status_code=401, detail="Invalid or missing token")
        if fail_page is not None and request_number == fail_page:
            raise HTTPException(status_code=500, detail="Simulated error")

    @app.get("/products")
    async def get_products(
        page: int = Query(1, ge=1),
        per_page: int = Query(page_size, ge=1),
        offset: int = Query(0, ge=0),
        limit: int = Query(page_size, ge=1),
        authorization: Optional[str] = Header(None),
    ):
        """Serve the catalog in the configured pagination mode."""
        if mode == "page":
            check_request(authorization, page)
            start = (page - 1) * per_page
            return {
                envelope_key: catalog[start:start + per_page],
                "meta": {"page": page, "total_pages": max(1, math.ceil(len(catalog) / per_page))},
            }

        if mode == "offset":
            check_request(authorization, offset // limit + 1)
            return {envelope_key: catalog[offset:offset + limit], "total": len(catalog)}

        check_request(authorization, 1)
        return {envelope_key: catalog}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "feed": name, "records": len(catalog)}

    return app


def create_app() -> FastAPI:
    """Mock feed configured from environment variables, for uvicorn --factory."""
    fail_page = os.getenv("MOCK_FAIL_PAGE")
    return create_mock_feed(
        name=os.getenv("MOCK_NAME", "mock"),
        pages=int(os.getenv("MOCK_PAGES", 3)),
        page_size=int(os.getenv("MOCK_PAGE_SIZE", 20)),
        mode=os.getenv("MOCK_MODE", "page"),
        fail_page=int(fail_page) if fail_page else None,
        token=os.getenv("MOCK_TOKEN") or None,
    )
