import datetime as dt
import random

from contafricax.orm_models import Category, Client, Supplier, Tag, Transaction
from contafricax.services.bootstrap import ensure_defaults
from contafricax.services.demo_data import generate_transactions, seed_demo


def _catalogue(db):
    ensure_defaults(db)
    return db.query(Category).order_by(Category.id).all(), db.query(Tag).order_by(Tag.id).all()


def _fingerprint(txns):
    return [(t.amount, t.type, t.description, t.date, t.status, t.currency) for t in txns]


def test_same_seed_same_records(db_session):
    cats, tags = _catalogue(db_session)
    a = generate_transactions(random.Random(7), 40, cats, tags)
    b = generate_transactions(random.Random(7), 40, cats, tags)
    c = generate_transactions(random.Random(8), 40, cats, tags)
    assert _fingerprint(a) == _fingerprint(b)
    assert _fingerprint(a) != _fingerprint(c)


def test_generated_transactions_are_valid(db_session):
    cats, tags = _catalogue(db_session)
    by_id = {c.id: c for c in cats}
    end = dt.date(2025, 9, 15)
    txns = generate_transactions(random.Random(1), 500, cats, tags, months=6, end=end)

    expenses = sum(1 for t in txns if t.type == "DEPENSE")
    assert 0.5 < expenses / len(txns) < 0.7
    for t in txns:
        assert t.amount > 0
        assert by_id[t.category_id].type == t.type
        assert end - dt.timedelta(days=180) <= t.date <= end
        assert t.status in {"VALIDEE", "EN_ATTENTE", "ANNULEE"}
        assert t.reference.startswith("DEMO-")


def test_seed_demo_inserts_everything(db_session):
    counts = seed_demo(db_session, count=30, seed=3, clients=4, suppliers=2)
    assert counts == {"clients": 4, "suppliers": 2, "transactions": 30}
    assert db_session.query(Transaction).count() == 30
    assert db_session.query(Client).count() == 4
    assert db_session.query(Supplier).count() == 2
    linked = db_session.query(Transaction).filter(Transaction.client_id.isnot(None)).all()
    client_ids = {c.id for c in db_session.query(Client).all()}
    assert all(t.client_id in client_ids for t in linked)


def test_seeded_ledger_is_reportable(client, admin_headers, db_session):
    seed_demo(db_session, count=60, seed=42)
    r = client.get("/api/reports/balance-sheet", headers=admin_headers)
    assert r.status_code == 200
    r = client.get("/api/transactions", params={"limit": 500}, headers=admin_headers)
    assert r.json()["total"] == 60
