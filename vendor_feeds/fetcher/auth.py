"""Request headers and bodies for vendor feeds."""

import base64
from typing import Any, Dict, Optional

from vendor_feeds.models.config import VendorConfig
from vendor_feeds.models.data_models import AuthMode, HttpMethod


def build_headers(vendor: VendorConfig) -> Dict[str, str]:
    """
    Build request headers for a vendor.

    - bearer: Authorization: Bearer <token>
    - basic: Authorization: Basic base64(<user:password>)
    - custom_header: <auth_header>: <token>
    - none: no credentials

    Configured extra headers are applied last.
    """
    headers = {"Accept": "application/json"}

    if vendor.auth_mode == AuthMode.BEARER:
        headers["Authorization"] = f"Bearer {vendor.auth_token}"
    elif vendor.auth_mode == AuthMode.BASIC:
        encoded = base64.b64encode(vendor.auth_token.encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {encoded}"
    elif vendor.auth_mode == AuthMode.CUSTOM_HEADER:
        headers[vendor.auth_header] = vendor.auth_token

    if vendor.http_method == HttpMethod.POST:
        headers["Content-Type"] = "application/json"

    headers.update(vendor.extra_headers)
    return headers


def build_body(vendor: VendorConfig) -> Optional[Dict[str, Any]]:
    """JSON body for POST feeds; None for GET."""
    if vendor.http_method != HttpMethod.POST:
        return None
    body = dict(vendor.request_body)
    if vendor.customer_id:
        body["CustId"] = vendor.customer_id
    return body
