from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.dishes.models import Dish
from modules.orders.constants import INITIAL_STATUS, VALID_TRANSITIONS
from modules.orders.models import Order

MENU = [
    ("チャーハン", Decimal("700")),
    ("餃子", Decimal("450")),
    ("麻婆豆腐", Decimal("800")),
]

DEMO_USERS = [
    ("chef", "デモシェフ", True),
    ("user", "デモユーザー", False),
]


def random_reachable_status(rng: random.Random) -> str:
    """Walk the transition table from the initial status for a few steps."""
    status = INITIAL_STATUS
    for _ in range(rng.randint(0, 4)):
        targets = sorted(VALID_TRANSITIONS[status])
        if not targets:
            break
        status = rng.choice(targets)
    return status


class Command(BaseCommand):
    help = "Seed database with demo users, dishes and order history."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=25,
            help="Orders to create per demo user (skipped if the user has orders).",
        )

    def handle(self, *args, **options):
        rng = random.Random(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        dishes = self._seed_dishes()
        orders_created = self._seed_orders(users, dishes, options["orders"], rng)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"dishes={len(dishes)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> list:
        User = get_user_model()
        users = []
        for username, name, is_staff in DEMO_USERS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"first_name": name, "is_staff": is_staff},
            )
            if created:
                user.set_password(f"{username}12345")
                user.save(update_fields=["password"])
            users.append(user)
        return users

    def _seed_dishes(self) -> list[Dish]:
        self.stdout.write("Creating dishes...")
        dishes = []
        for name, price in MENU:
            dish, _ = Dish.objects.get_or_create(name=name, defaults={"price": price})
            dishes.append(dish)
        self.stdout.write(self.style.SUCCESS("Creating dishes... Done!"))
        return dishes

    def _seed_orders(self, users, dishes, per_user: int, rng: random.Random) -> int:
        self.stdout.write("Creating orders...")
        if not dishes:
            self.stdout.write(self.style.WARNING("Skipping orders (no dishes)."))
            return 0

        created = 0
        now = timezone.now()
        for user in users:
            if Order.objects.filter(user=user).exists():
                continue
            for _ in range(per_user):
                order = Order.objects.create(
                    user=user,
                    dish=rng.choice(dishes),
                    quantity=rng.randint(1, 3),
                    status=random_reachable_status(rng),
                )
                created_at = now - timedelta(minutes=rng.randint(0, 60 * 24 * 30))
                Order.objects.filter(id=order.id).update(
                    created_at=created_at, updated_at=created_at
                )
                created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
