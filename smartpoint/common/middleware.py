"""
Middleware for device provenance and security headers
"""
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import logging

logger = logging.getLogger(__name__)


class DeviceMiddleware(BaseHTTPMiddleware):
    """
    Middleware that extracts the device id from the X-Device-ID header
    and sets it on request.state for use in endpoint handlers
    """

    HEADER = "X-Device-ID"
    MAX_LENGTH = 100

    async def dispatch(self, request: Request, call_next):
        device_id = request.headers.get(self.HEADER)
        if device_id:
            device_id = device_id.strip()[:self.MAX_LENGTH] or None
        request.state.device_id = device_id

        if device_id:
            logger.debug(f"Request to {request.url.path} from device: {device_id}")

        response = await call_next(request)

        if device_id:
            response.headers[self.HEADER] = device_id

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for production
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # Add security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response
