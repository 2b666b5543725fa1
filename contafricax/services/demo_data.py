"""Deterministic demo records: believable clients, suppliers and transactions.

Used by ``contafricax seed-demo`` and by tests. Pass a seed for reproducible
output.
"""

from __future__ import annotations

import datetime as dt
import logging
import random as _random
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from contafricax.orm_models import (
    Category,
    Client,
    Supplier,
    Tag,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from contafricax.services.bootstrap import ensure_defaults
from contafricax.utils.currency import get_currency, round_amount

log = logging.getLogger(__name__)

_CITIES: list[tuple[str, str, str]] = [
    ("Dakar", "Sénégal", "+221"),
    ("Abidjan", "Côte d'Ivoire", "+225"),
    ("Bamako", "Mali", "+223"),
    ("Ouagadougou", "Burkina Faso", "+226"),
    ("Lomé", "Togo", "+228"),
    ("Cotonou", "Bénin", "+229"),
    ("Douala", "Cameroun", "+237"),
    ("Libreville", "Gabon", "+241"),
    ("Lagos", "Nigeria", "+234"),
    ("Accra", "Ghana", "+233"),
]

_CLIENT_NAMES = [
    "Société Ivoirienne de Distribution",
    "Sahel Agro Export",
    "Teranga Services",
    "Baobab Consulting",
    "Kora Digital",
    "Niger Delta Logistics",
    "Atlantique Import",
    "Cacao Premium SARL",
]

_SUPPLIER_NAMES: list[tuple[str, str]] = [
    ("Grands Moulins de l'Ouest", "Matières premières"),
    ("Sénélec Pro", "Énergie"),
    ("Orange Business Afrique", "Télécommunications"),
    ("Transit Express", "Transport"),
    ("Bureau Plus", "Fournitures"),
    ("Imprimerie du Plateau", "Impression"),
]

# descriptions per default category name
_DESCRIPTIONS: dict[str, list[str]] = {
    "Salaire": ["Salaire mensuel", "Prime trimestrielle"],
    "Ventes": ["Vente marchandises", "Facture client", "Prestation de service"],
    "Investissements": ["Dividendes", "Intérêts placement"],
    "Alimentation": ["Courses supermarché", "Restaurant d'affaires"],
    "Transport": ["Carburant", "Taxi", "Billet d'avion"],
    "Logement": ["Loyer bureau", "Charges locatives"],
    "Loisirs": ["Séminaire équipe", "Abonnement"],
    "Santé": ["Pharmacie", "Mutuelle"],
    "Achats de marchandises": ["Achat stock", "Réassort fournisseur"],
    "Frais bancaires": ["Frais de tenue de compte", "Commission virement"],
    "Impôts et taxes": ["TVA à payer", "Patente"],
}

# XOF ranges; other categories fall back to 5k-150k
_AMOUNT_RANGES: dict[str, tuple[int, int]] = {
    "Salaire": (250_000, 1_200_000),
    "Ventes": (50_000, 2_500_000),
    "Investissements": (20_000, 400_000),
    "Achats de marchandises": (40_000, 1_500_000),
    "Logement": (100_000, 600_000),
    "Impôts et taxes": (25_000, 500_000),
    "Frais bancaires": (1_000, 25_000),
}

# Mostly XOF; occasional other currencies
_CURRENCY_WEIGHTS: list[tuple[str, float]] = [
    ("XOF", 0.80),
    ("EUR", 0.08),
    ("USD", 0.05),
    ("XAF", 0.04),
    ("NGN", 0.03),
]

_STATUS_WEIGHTS: list[tuple[str, float]] = [
    (TransactionStatus.validated.value, 0.80),
    (TransactionStatus.pending.value, 0.15),
    (TransactionStatus.cancelled.value, 0.05),
]

# indicative XOF per unit, only to keep generated foreign amounts plausible
_XOF_PER_UNIT = {"XOF": 1, "XAF": 1, "EUR": 655.957, "USD": 605, "NGN": 0.4}


def _rng(seed: Optional[int]) -> _random.Random:
    return _random.Random(seed) if seed is not None else _random.Random()


def _weighted(rng: _random.Random, items: Iterable[tuple[str, float]]) -> str:
    items = list(items)
    total = sum(w for _, w in items)
    x = rng.random() * total
    cum = 0.0
    for value, w in items:
        cum += w
        if x <= cum:
            return value
    return items[-1][0]


def _random_date(rng: _random.Random, start_days_ago: int, end: dt.date) -> dt.date:
    return end - dt.timedelta(days=rng.randrange(start_days_ago + 1))


def _amount(rng: _random.Random, category: str, currency: str) -> Decimal:
    lo, hi = _AMOUNT_RANGES.get(category, (5_000, 150_000))
    xof = rng.uniform(lo, hi)
    value = Decimal(str(xof / _XOF_PER_UNIT[currency]))
    value = round_amount(value, currency)
    # keep strictly positive after rounding
    return value if value > 0 else Decimal(1).scaleb(-get_currency(currency).decimals)


def generate_clients(rng: _random.Random, n: int) -> list[Client]:
    out = []
    for i in range(n):
        city, country, prefix = rng.choice(_CITIES)
        name = _CLIENT_NAMES[i % len(_CLIENT_NAMES)]
        if i >= len(_CLIENT_NAMES):
            name = f"{name} {i // len(_CLIENT_NAMES) + 1}"
        slug = name.lower().replace(" ", "").replace("'", "")[:16]
        out.append(
            Client(
                name=name,
                email=f"contact@{slug}.com",
                phone=f"{prefix} {rng.randint(10, 99)} {rng.randint(100, 999)} {rng.randint(10, 99)} {rng.randint(10, 99)}",
                address=f"{rng.randint(1, 250)} avenue de l'Indépendance",
                city=city,
                country=country,
                status=_weighted(
                    rng, [("actif", 0.7), ("prospect", 0.15), ("inactif", 0.1), ("archivé", 0.05)]
                ),
                total_sales=Decimal(rng.randrange(0, 25_000_000, 5_000)),
                outstanding_balance=Decimal(rng.choice([0, 0, rng.randrange(50_000, 2_000_000, 5_000)])),
                contacts=[],
            )
        )
    return out


def generate_suppliers(rng: _random.Random, n: int) -> list[Supplier]:
    out = []
    for i in range(n):
        city, country, prefix = rng.choice(_CITIES)
        name, category = _SUPPLIER_NAMES[i % len(_SUPPLIER_NAMES)]
        if i >= len(_SUPPLIER_NAMES):
            name = f"{name} {i // len(_SUPPLIER_NAMES) + 1}"
        out.append(
            Supplier(
                name=name,
                email=f"compta{i + 1}@fournisseur.africa",
                phone=f"{prefix} {rng.randint(10, 99)} {rng.randint(100, 999)} {rng.randint(1000, 9999)}",
                address=f"Zone industrielle, lot {rng.randint(1, 400)}",
                city=city,
                country=country,
                category=category,
                status=_weighted(rng, [("actif", 0.8), ("inactif", 0.15), ("archivé", 0.05)]),
                total_purchases=Decimal(rng.randrange(0, 15_000_000, 5_000)),
                outstanding_payable=Decimal(rng.choice([0, 0, rng.randrange(25_000, 1_000_000, 5_000)])),
                contacts=[],
            )
        )
    return out


def generate_transactions(
    rng: _random.Random,
    n: int,
    categories: list[Category],
    tags: list[Tag],
    *,
    months: int = 6,
    end: Optional[dt.date] = None,
    clients: Optional[list[Client]] = None,
    suppliers: Optional[list[Supplier]] = None,
    created_by: Optional[int] = None,
) -> list[Transaction]:
    end = end or dt.date.today()
    revenue_cats = [c for c in categories if c.type == TransactionType.revenue.value]
    expense_cats = [c for c in categories if c.type == TransactionType.expense.value]
    if not revenue_cats or not expense_cats:
        raise ValueError("demo data needs at least one revenue and one expense category")

    out = []
    for _ in range(n):
        is_expense = rng.random() < 0.6
        cat = rng.choice(expense_cats if is_expense else revenue_cats)
        currency = _weighted(rng, _CURRENCY_WEIGHTS)
        t = Transaction(
            amount=_amount(rng, cat.name, currency),
            type=cat.type,
            description=rng.choice(_DESCRIPTIONS.get(cat.name, [cat.name])),
            date=_random_date(rng, months * 30, end),
            status=_weighted(rng, _STATUS_WEIGHTS),
            category_id=cat.id,
            reference=f"DEMO-{rng.randrange(10**6):06d}",
            currency=currency,
            created_by=created_by,
        )
        if tags:
            t.tags = rng.sample(tags, k=rng.randint(0, min(2, len(tags))))
        if not is_expense and clients and rng.random() < 0.5:
            t.client_id = rng.choice(clients).id
        if is_expense and suppliers and rng.random() < 0.4:
            t.supplier_id = rng.choice(suppliers).id
        out.append(t)
    return out


def seed_demo(
    db: Session,
    *,
    count: int = 120,
    seed: Optional[int] = 42,
    months: int = 6,
    clients: int = 6,
    suppliers: int = 4,
    user: Optional[User] = None,
) -> dict:
    """Insert demo clients, suppliers and ``count`` transactions; returns counts."""
    rng = _rng(seed)
    ensure_defaults(db)

    client_rows = generate_clients(rng, clients)
    supplier_rows = generate_suppliers(rng, suppliers)
    db.add_all(client_rows + supplier_rows)
    db.flush()

    txns = generate_transactions(
        rng,
        count,
        db.query(Category).order_by(Category.id).all(),
        db.query(Tag).order_by(Tag.id).all(),
        months=months,
        clients=client_rows,
        suppliers=supplier_rows,
        created_by=user.id if user else None,
    )
    db.add_all(txns)
    db.commit()
    log.info(
        "demo data seeded clients=%d suppliers=%d transactions=%d",
        len(client_rows),
        len(supplier_rows),
        len(txns),
    )
    return {"clients": len(client_rows), "suppliers": len(supplier_rows), "transactions": len(txns)}
