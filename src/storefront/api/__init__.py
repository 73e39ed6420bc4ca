from storefront.api.routes import admin_router, coupon_router, order_router

__all__ = ["order_router", "coupon_router", "admin_router"]
