from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.dtos import AddOrUpdateQuantitiesDTO
from modules.orders.models import Order
from modules.orders.providers import build_order_services
from modules.products.models import PriceBook, PriceBookEntry, Product

CATALOG = [
    (
        ("LAP", "Laptops"),
        [
            ("LAP-BASIC", "Laptop Basic 14\"", Decimal("899.00")),
            ("LAP-PRO", "Laptop Pro 16\"", Decimal("2499.00")),
        ],
    ),
    (
        ("MON", "Monitors"),
        [
            ("MON-24", "Monitor 24\" FHD", Decimal("179.90")),
            ("MON-27", "Monitor 27\" QHD", Decimal("329.90")),
            ("MON-32", "Monitor 32\" 4K", Decimal("599.00")),
        ],
    ),
    (
        ("KEY", "Keyboards"),
        [
            ("KEY-MEM", "Membrane Keyboard", Decimal("24.90")),
            ("KEY-MECH", "Mechanical Keyboard", Decimal("119.00")),
        ],
    ),
    (
        ("SUP", "Support Plans"),
        [
            ("SUP-STD", "Standard Support (1 year)", Decimal("99.00")),
            ("SUP-PRM", "Premium Support (3 years)", Decimal("349.00")),
        ],
    ),
]


class Command(BaseCommand):
    help = "Seed database with a priced catalog and sample orders."

    def handle(self, *args, **options):
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        price_book = self._seed_price_book()
        children = self._seed_catalog(price_book)
        orders_created = self._seed_orders(price_book, children)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(children)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_price_book(self) -> PriceBook:
        price_book, _ = PriceBook.objects.get_or_create(
            name="Standard Price Book",
            defaults={"is_standard": True, "is_active": True},
        )
        return price_book

    def _seed_catalog(self, price_book: PriceBook) -> list[Product]:
        self.stdout.write("Creating catalog...")
        children: list[Product] = []
        for (parent_code, parent_name), items in CATALOG:
            parent, _ = Product.objects.get_or_create(
                product_code=parent_code, defaults={"name": parent_name}
            )
            for code, name, price in items:
                child, _ = Product.objects.get_or_create(
                    product_code=code, defaults={"name": name, "parent": parent}
                )
                PriceBookEntry.objects.get_or_create(
                    price_book=price_book,
                    product=child,
                    defaults={"unit_price": price},
                )
                children.append(child)
        self.stdout.write(self.style.SUCCESS("Creating catalog... Done!"))
        return children

    def _seed_orders(self, price_book: PriceBook, children: list[Product]) -> int:
        self.stdout.write("Creating orders...")
        if Order.objects.filter(price_book=price_book).exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0

        services = build_order_services()
        by_code = {child.product_code: child for child in children}

        draft = Order.objects.create(price_book=price_book)
        services.items.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(
                order_id=draft.id,
                product_id_to_quantity={
                    by_code["LAP-BASIC"].id: 2,
                    by_code["MON-24"].id: 4,
                },
            )
        )

        activated = Order.objects.create(price_book=price_book)
        services.items.add_or_update_quantities(
            AddOrUpdateQuantitiesDTO(
                order_id=activated.id,
                product_id_to_quantity={
                    by_code["LAP-PRO"].id: 1,
                    by_code["SUP-PRM"].id: 1,
                },
            )
        )
        services.activation.activate(activated.id, notes="Seed order")

        Order.objects.create(price_book=price_book)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return 3
