from nexus.services import identity_service, reconciliation_service, store_client
from nexus.services.snapshot_service import get_snapshot


def _invoke(app, *args):
    runner = app.test_cli_runner()
    return runner.invoke(args=list(args))


def test_system_init_seeds_demo_data_through_services(app, db_session):
    result = _invoke(app, "system", "init", "--developer-telegram-id", "42", "--developer-name", "Dev")

    assert result.exit_code == 0, result.output
    assert "DONE Nexus initialized" in result.output
    assert len(store_client.select_products()) == 6
    assert len(store_client.select_clients()) == 3
    assert reconciliation_service.stock_discrepancies() == []
    users = identity_service.list_users()
    assert [(u.name, u.role, u.telegram_id) for u in users] == [("Dev", "DEVELOPER", 42)]


def test_system_init_is_idempotent(app, db_session):
    _invoke(app, "system", "init", "--developer-telegram-id", "42")
    result = _invoke(app, "system", "init", "--developer-telegram-id", "42")

    assert result.exit_code == 0, result.output
    assert "already registered" in result.output
    assert "Catalog is not empty" in result.output
    assert len(store_client.select_products()) == 6


def test_system_init_without_demo(app, db_session):
    result = _invoke(app, "system", "init", "--no-demo")
    assert result.exit_code == 0
    assert store_client.select_products() == []


def test_reset_db(app, db_session, product):
    result = _invoke(app, "system", "reset-db", "--yes")
    assert result.exit_code == 0
    assert store_client.select_products() == []
    assert get_snapshot().products == ()


def test_users_create_list_and_set_role(app, db_session):
    result = _invoke(app, "users", "create", "--telegram-id", "7", "--name", "Jane", "--role", "staff")
    assert result.exit_code == 0, result.output
    user = identity_service.list_users()[0]
    assert user.role == "STAFF"

    result = _invoke(app, "users", "list")
    assert "Jane" in result.output

    result = _invoke(app, "users", "set-role", user.id, "ADMIN")
    assert result.exit_code == 0
    assert identity_service.get_user(user.id).role == "ADMIN"


def test_users_create_duplicate_telegram_id(app, db_session):
    _invoke(app, "users", "create", "--telegram-id", "7", "--name", "Jane")
    result = _invoke(app, "users", "create", "--telegram-id", "7", "--name", "Jane again")
    assert result.exit_code != 0
    assert "already registered" in result.output


def test_reconcile_commands(app, db_session, product):
    result = _invoke(app, "reconcile", "stock")
    assert "PASS" in result.output

    store_client.increment_stock(product.id, -2)
    result = _invoke(app, "reconcile", "stock")
    assert "FAIL 1 product(s)" in result.output
    assert "diff=-2" in result.output

    result = _invoke(app, "reconcile", "orders")
    assert "PASS" in result.output


def test_snapshot_show(app, db_session, product):
    result = _invoke(app, "snapshot", "show")
    assert result.exit_code == 0
    assert "Products: 1" in result.output
    assert "Stock value: 200.00" in result.output
