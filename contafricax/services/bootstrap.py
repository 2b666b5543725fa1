"""Default catalogue and organisation settings for a fresh instance."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from contafricax.config import settings
from contafricax.orm_models import AppSettings, Category, ReportGroup, Tag, TransactionType

log = logging.getLogger(__name__)

REV = TransactionType.revenue.value
DEP = TransactionType.expense.value

# (name, type, color, icon, report_group)
DEFAULT_CATEGORIES: list[tuple[str, str, str, str, str]] = [
    ("Salaire", REV, "#4CAF50", "work", ReportGroup.operating.value),
    ("Ventes", REV, "#2196F3", "shopping_cart", ReportGroup.operating.value),
    ("Investissements", REV, "#9C27B0", "trending_up", ReportGroup.non_operating.value),
    ("Alimentation", DEP, "#F44336", "restaurant", ReportGroup.operating.value),
    ("Transport", DEP, "#FF9800", "directions_car", ReportGroup.operating.value),
    ("Logement", DEP, "#795548", "home", ReportGroup.operating.value),
    ("Loisirs", DEP, "#E91E63", "sports_esports", ReportGroup.operating.value),
    ("Santé", DEP, "#00BCD4", "local_hospital", ReportGroup.operating.value),
    ("Achats de marchandises", DEP, "#607D8B", "inventory", ReportGroup.cost_of_sales.value),
    ("Frais bancaires", DEP, "#3F51B5", "account_balance", ReportGroup.financial.value),
    ("Impôts et taxes", DEP, "#FFC107", "receipt", ReportGroup.tax.value),
]

DEFAULT_TAGS: list[tuple[str, str]] = [
    ("Personnel", "#4CAF50"),
    ("Professionnel", "#2196F3"),
    ("Urgent", "#F44336"),
    ("Récurrent", "#FF9800"),
    ("Famille", "#9C27B0"),
]


def get_app_settings(db: Session) -> AppSettings:
    """Return the organisation settings row, creating it on first access."""
    row = db.get(AppSettings, 1)
    if row is None:
        row = AppSettings(
            id=1,
            primary_currency=settings.DEFAULT_CURRENCY.upper(),
            secondary_currencies=["EUR", "USD"],
        )
        db.add(row)
        db.flush()
    return row


def ensure_defaults(db: Session) -> dict:
    """Insert any missing default categories, tags and the settings row. Idempotent."""
    have_cats = {(c.name, c.type) for c in db.query(Category).all()}
    added_cats = 0
    for name, ttype, color, icon, group in DEFAULT_CATEGORIES:
        if (name, ttype) in have_cats:
            continue
        db.add(Category(name=name, type=ttype, color=color, icon=icon, report_group=group))
        added_cats += 1

    have_tags = {t.name for t in db.query(Tag).all()}
    added_tags = 0
    for name, color in DEFAULT_TAGS:
        if name in have_tags:
            continue
        db.add(Tag(name=name, color=color))
        added_tags += 1

    get_app_settings(db)
    db.commit()
    if added_cats or added_tags:
        log.info("seeded defaults categories=%d tags=%d", added_cats, added_tags)
    return {"categories": added_cats, "tags": added_tags}
