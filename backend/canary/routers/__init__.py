"""API routers."""
from .performance import router as performance_router
from .device_config import router as device_config_router
from .registration import router as registration_router
from .gateway import router as gateway_router

__all__ = ["performance_router", "device_config_router", "registration_router", "gateway_router"]
