import argparse
import sys

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contafricax import db as app_db
from contafricax import orm_models  # noqa: F401  register tables on Base.metadata
from contafricax.config import settings
from contafricax.db import get_db
from contafricax.orm_models import User
from contafricax.services.bootstrap import ensure_defaults
from contafricax.services.demo_data import seed_demo
from contafricax.utils.auth import assign_role, hash_password


def cmd_init_db(args):
    app_db.Base.metadata.create_all(bind=app_db.engine)
    db: Session = next(get_db())
    try:
        added = ensure_defaults(db)
    finally:
        db.close()
    print({"tables": "ok", **added})


def cmd_seed_demo(args):
    app_db.Base.metadata.create_all(bind=app_db.engine)
    db: Session = next(get_db())
    try:
        user = db.query(User).order_by(User.id).first()
        out = seed_demo(
            db,
            count=args.count,
            seed=args.seed,
            months=args.months,
            clients=args.clients,
            suppliers=args.suppliers,
            user=user,
        )
    finally:
        db.close()
    print(out)


def cmd_create_admin(args):
    email = (args.email or "").strip().lower()
    if not email or "@" not in email:
        print("A valid --email is required", file=sys.stderr)
        sys.exit(2)
    if len(args.password or "") < 6:
        print("--password must be at least 6 characters", file=sys.stderr)
        sys.exit(2)

    app_db.Base.metadata.create_all(bind=app_db.engine)
    db: Session = next(get_db())
    try:
        u = db.query(User).filter(User.email == email).first()
        created = u is None
        if created:
            u = User(email=email, password_hash=hash_password(args.password), name=args.name)
            db.add(u)
            db.flush()
        else:
            u.password_hash = hash_password(args.password)
            u.is_active = True
            if args.name:
                u.name = args.name
        assign_role(db, u, "admin")
        db.commit()
        ensure_defaults(db)
        print({"email": u.email, "id": u.id, "created": created, "role": "admin"})
    finally:
        db.close()


def cmd_db_check(args):
    try:
        with app_db.engine.connect() as conn:
            conn.execute(text("select 1"))
    except SQLAlchemyError as e:
        print({"ok": False, "url": app_db.engine.url.render_as_string(hide_password=True), "error": str(e)})
        sys.exit(1)
    print({"ok": True, "url": app_db.engine.url.render_as_string(hide_password=True), "env": settings.APP_ENV})


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="contafricax")
    sub = p.add_subparsers(dest="cmd")

    sub.add_parser("init-db", help="Create tables and default categories, tags and settings").set_defaults(
        fn=cmd_init_db
    )

    d = sub.add_parser("seed-demo", help="Insert demo clients, suppliers and transactions")
    d.add_argument("--count", type=int, default=120)
    d.add_argument("--seed", type=int, default=42)
    d.add_argument("--months", type=int, default=6)
    d.add_argument("--clients", type=int, default=6)
    d.add_argument("--suppliers", type=int, default=4)
    d.set_defaults(fn=cmd_seed_demo)

    a = sub.add_parser("create-admin", help="Create or reset an admin account")
    a.add_argument("--email", required=True)
    a.add_argument("--password", required=True)
    a.add_argument("--name")
    a.set_defaults(fn=cmd_create_admin)

    sub.add_parser("db-check", help="Check database connectivity").set_defaults(fn=cmd_db_check)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not getattr(args, "fn", None):
        p.print_help()
        sys.exit(1)
    args.fn(args)


if __name__ == "__main__":
    main()
