# bakery/data/seed.py
from decimal import Decimal

from bakery.data import models  # noqa: F401
from bakery.data.database import Base, SessionLocal, engine
from bakery.data.models.user import UserModel
from bakery.domain.enums import ProductStatus, UserRole
from bakery.repos.product_repo import ProductRepo
from bakery.repos.user_repo import UserRepo
from bakery.services.catalog_service import CatalogService
from bakery.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {
        "name": "Sourdough Loaf",
        "slug": "sourdough-loaf",
        "description": "Naturally leavened, 24h cold ferment.",
        "status": ProductStatus.ACTIVE,
        "variants": [
            {"sku": "SD-HALF", "label": "Half loaf", "price": Decimal("4.50"), "initial_stock": 20, "low_stock_threshold": 5},
            {"sku": "SD-WHOLE", "label": "Whole loaf", "price": Decimal("8.00"), "initial_stock": 15, "low_stock_threshold": 5},
        ],
    },
    {
        "name": "Butter Croissant",
        "slug": "butter-croissant",
        "description": "Laminated with cultured butter.",
        "status": ProductStatus.ACTIVE,
        "variants": [
            {"sku": "CR-SINGLE", "label": "Single", "price": Decimal("3.25"), "initial_stock": 40, "low_stock_threshold": 10},
            {"sku": "CR-BOX6", "label": "Box of 6", "price": Decimal("17.00"), "initial_stock": 10, "low_stock_threshold": 2},
        ],
    },
    {
        "name": "Celebration Cake",
        "slug": "celebration-cake",
        "description": "Vanilla sponge, made to order.",
        "status": ProductStatus.DRAFT,
        "variants": [
            {"sku": "CAKE-8IN", "label": "8 inch", "price": Decimal("42.00"), "initial_stock": 3, "low_stock_threshold": 1},
        ],
    },
]


def _ensure_user(users: UserRepo, email: str, name: str, role: UserRole) -> UserModel:
    user = users.get_by_email(email)
    if user:
        return user
    return users.create_user(UserModel(email=email, name=name, role=role))


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        users = UserRepo(db)
        admin = _ensure_user(users, "admin@bakery.local", "Bakery Admin", UserRole.ADMIN)
        _ensure_user(users, "customer@bakery.local", "Demo Customer", UserRole.CUSTOMER)

        # only seed products that are not there yet
        catalog = CatalogService(db)
        products = ProductRepo(db)
        for payload in PRODUCTS:
            if products.get_by_slug(payload["slug"]):
                continue
            catalog.create_product(admin, payload)
            logger.info(f"Seeded product {payload['slug']}")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
