# bakery/api/__init__.py
from fastapi import FastAPI

from bakery.api.routers import cart, health, orders, payments, products, users


def include_routers(app: FastAPI):
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
