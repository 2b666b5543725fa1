import pytest

from contafricax.cli import main
from contafricax.orm_models import Category, Transaction, User
from contafricax.utils.auth import user_role, verify_password


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "seed-demo" in capsys.readouterr().out


def test_init_db_is_idempotent(db_session, capsys):
    main(["init-db"])
    first = capsys.readouterr().out
    assert "'categories': 11" in first
    main(["init-db"])
    assert "'categories': 0" in capsys.readouterr().out
    assert db_session.query(Category).count() == 11


def test_seed_demo(db_session, capsys):
    main(["seed-demo", "--count", "25", "--seed", "5", "--clients", "2", "--suppliers", "1"])
    assert "'transactions': 25" in capsys.readouterr().out
    assert db_session.query(Transaction).count() == 25


def test_create_admin_and_reset(db_session, capsys):
    main(["create-admin", "--email", "Boss@Test.local", "--password", "secret99", "--name", "Boss"])
    assert "'created': True" in capsys.readouterr().out
    u = db_session.query(User).filter(User.email == "boss@test.local").one()
    assert user_role(u) == "admin"

    main(["create-admin", "--email", "boss@test.local", "--password", "another9"])
    assert "'created': False" in capsys.readouterr().out
    db_session.expire_all()
    u = db_session.query(User).filter(User.email == "boss@test.local").one()
    assert verify_password("another9", u.password_hash)
    assert u.name == "Boss"


def test_create_admin_rejects_bad_input(db_session):
    with pytest.raises(SystemExit) as exc:
        main(["create-admin", "--email", "nope", "--password", "secret99"])
    assert exc.value.code == 2
    with pytest.raises(SystemExit) as exc:
        main(["create-admin", "--email", "a@b.co", "--password", "123"])
    assert exc.value.code == 2


def test_db_check(db_session, capsys):
    main(["db-check"])
    assert "'ok': True" in capsys.readouterr().out
