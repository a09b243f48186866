from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.addresses.models import Address
from modules.exchanges.dtos import CreateExchangeDTO, ExchangeItemDTO
from modules.exchanges.models import Exchange
from modules.exchanges.services import build_exchange_services
from modules.sellers.models import RegistrationStatus, SellerRegistration

RETAILERS = [
    ("asha", "Asha", "Verma", "Asha Handlooms", RegistrationStatus.APPROVED),
    ("bilal", "Bilal", "Khan", "Khan Electronics", RegistrationStatus.APPROVED),
    ("chitra", "Chitra", "Iyer", "Chitra Crafts", RegistrationStatus.APPROVED),
    ("dev", "Dev", "Malhotra", "Dev Sports", RegistrationStatus.APPROVED),
    ("esha", "Esha", "Nair", "Esha Organics", RegistrationStatus.PENDING),
    ("farhan", "Farhan", "Ali", "Ali Traders", RegistrationStatus.REJECTED),
]

CITIES = [
    ("Mumbai", "Maharashtra", "400001"),
    ("Bengaluru", "Karnataka", "560001"),
    ("Jaipur", "Rajasthan", "302001"),
    ("Kochi", "Kerala", "682001"),
    ("Pune", "Maharashtra", "411001"),
    ("Lucknow", "Uttar Pradesh", "226001"),
]

CATALOG = [
    ("SKU-SAREE-01", "Cotton Saree", Decimal("1499.00")),
    ("SKU-SHAWL-02", "Pashmina Shawl", Decimal("2499.00")),
    ("SKU-EARB-03", "Wireless Earbuds", Decimal("1999.00")),
    ("SKU-CHRG-04", "Fast Charger", Decimal("799.00")),
    ("SKU-POT-05", "Terracotta Pot", Decimal("349.00")),
    ("SKU-LAMP-06", "Brass Lamp", Decimal("1199.00")),
    ("SKU-BAT-07", "Cricket Bat", Decimal("2299.00")),
    ("SKU-BALL-08", "Leather Ball", Decimal("499.00")),
]


class Command(BaseCommand):
    help = "Seed database with retailers, addresses and sample exchanges."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        registrations = self._seed_registrations(users)
        addresses = self._seed_addresses(users)
        exchanges_created = self._seed_exchanges(users, addresses)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"registrations={registrations}, "
                f"addresses={len(addresses)}, "
                f"exchanges={exchanges_created}"
            )
        )

    def _seed_users(self) -> dict[str, str]:
        """Create the retailer users. Returns username -> user id."""
        User = get_user_model()
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")

        users: dict[str, str] = {}
        for username, first, last, _, _ in RETAILERS:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    password=f"{username}123",
                    first_name=first,
                    last_name=last,
                    email=f"{username}@example.com",
                )
            users[username] = str(user.pk)
        return users

    def _seed_registrations(self, users: dict[str, str]) -> int:
        self.stdout.write("Creating seller registrations...")
        created = 0
        for username, first, last, shop_name, status in RETAILERS:
            _, was_created = SellerRegistration.objects.get_or_create(
                user_id=users[username],
                defaults={
                    "shop_name": shop_name,
                    "display_name": f"{first} {last}",
                    "status": status,
                },
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating seller registrations... Done!"))
        return created

    def _seed_addresses(self, users: dict[str, str]) -> dict[str, Address]:
        self.stdout.write("Creating addresses...")
        addresses: dict[str, Address] = {}
        for (username, first, last, shop_name, _), (city, state, postal) in zip(
            RETAILERS, CITIES
        ):
            address, _ = Address.objects.get_or_create(
                user_id=users[username],
                is_default=True,
                is_active=True,
                defaults={
                    "full_name": f"{first} {last}",
                    "phone": f"98{random.randint(10000000, 99999999)}",
                    "address_line1": f"{random.randint(1, 200)} {shop_name} Lane",
                    "city": city,
                    "state": state,
                    "postal_code": postal,
                },
            )
            addresses[username] = address
        self.stdout.write(self.style.SUCCESS("Creating addresses... Done!"))
        return addresses

    def _seed_exchanges(
        self, users: dict[str, str], addresses: dict[str, Address]
    ) -> int:
        self.stdout.write("Creating exchanges...")
        if Exchange.objects.exists():
            self.stdout.write(
                self.style.WARNING("Skipping exchanges (already seeded).")
            )
            return 0

        services = build_exchange_services()
        pairs = [("asha", "bilal"), ("chitra", "dev"), ("bilal", "chitra")]
        created = 0
        for index, (initiator, receiver) in enumerate(pairs):
            offered, wanted = random.sample(CATALOG, k=2)
            dto = CreateExchangeDTO(
                receiver_id=users[receiver],
                initiator_address_id=addresses[initiator].id,
                initiator_items=[_item(offered, random.randint(1, 3))],
                receiver_items=[_item(wanted, random.randint(1, 3))],
                initiator_notes=f"Seed exchange {index + 1}",
            )
            exchange = services.registrar.create_exchange(users[initiator], dto)
            created += 1

            # Leave the first proposal pending; move the others along.
            if index == 0:
                continue
            services.state_machine.approve_exchange(
                str(exchange.id),
                users[receiver],
                receiver_address_id=str(addresses[receiver].id),
            )

        self.stdout.write(self.style.SUCCESS("Creating exchanges... Done!"))
        return created


def _item(entry: tuple[str, str, Decimal], quantity: int) -> ExchangeItemDTO:
    sku, name, price = entry
    return ExchangeItemDTO(
        product_id=sku.lower(),
        product_name=name,
        sku=sku,
        quantity=quantity,
        unit_price=price,
    )
