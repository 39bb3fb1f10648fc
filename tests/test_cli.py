import pytest

from local_services_api import cli
from local_services_api.app.core.db import get_connection
from local_services_api.app.core.security import verify_password


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli.db")


def query(db_path, sql, *params):
    conn = get_connection(db_path)
    try:
        return conn.execute(sql, params).fetchall()
    finally:
        conn.close()


def add_user(db_path, email="jane@example.com"):
    conn = get_connection(db_path)
    try:
        conn.execute(
            "INSERT INTO users (email, password, name, role) VALUES (?, 'x$y', 'Jane', 'customer')",
            (email,),
        )
    finally:
        conn.close()


def test_init_db_creates_schema_and_categories(db_path, capsys):
    assert cli.main(["--db", db_path, "init-db"]) == 0
    assert "Database ready" in capsys.readouterr().out
    names = [row["name"] for row in query(db_path, "SELECT name FROM service_categories")]
    assert "Plumbing" in names
    # Running it twice is harmless.
    assert cli.main(["--db", db_path, "init-db"]) == 0
    assert len(query(db_path, "SELECT version FROM migrations")) == 2


def test_reset_password(db_path, capsys):
    cli.main(["--db", db_path, "init-db"])
    add_user(db_path)
    assert cli.main(["--db", db_path, "reset-password", "--email", "jane@example.com", "--password", "n3w-pass"]) == 0
    out = capsys.readouterr().out
    assert "n3w-pass" not in out
    stored = query(db_path, "SELECT password FROM users WHERE email = ?", "jane@example.com")[0]["password"]
    assert verify_password("n3w-pass", stored)


def test_reset_password_prompts_when_not_given(db_path, monkeypatch):
    cli.main(["--db", db_path, "init-db"])
    add_user(db_path)
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "prompted-pass")
    assert cli.main(["--db", db_path, "reset-password", "--email", "jane@example.com"]) == 0
    stored = query(db_path, "SELECT password FROM users")[0]["password"]
    assert verify_password("prompted-pass", stored)


def test_reset_password_rejects_short_password(db_path):
    cli.main(["--db", db_path, "init-db"])
    add_user(db_path)
    assert cli.main(["--db", db_path, "reset-password", "--email", "jane@example.com", "--password", "123"]) == 1


def test_reset_password_for_unknown_user(db_path, capsys):
    assert cli.main(["--db", db_path, "reset-password", "--email", "ghost@example.com", "--password", "secret123"]) == 2
    assert "No user found" in capsys.readouterr().err


def test_deactivate_and_activate(db_path):
    cli.main(["--db", db_path, "init-db"])
    add_user(db_path)
    assert cli.main(["--db", db_path, "deactivate", "--email", "JANE@example.com"]) == 0
    assert query(db_path, "SELECT is_active FROM users")[0]["is_active"] == 0
    assert cli.main(["--db", db_path, "activate", "--email", "jane@example.com"]) == 0
    assert query(db_path, "SELECT is_active FROM users")[0]["is_active"] == 1


def test_deactivate_unknown_user(db_path):
    assert cli.main(["--db", db_path, "deactivate", "--email", "ghost@example.com"]) == 2


def test_add_category(db_path, capsys):
    assert cli.main(["--db", db_path, "add-category", "--name", "Painting", "--description", "Walls"]) == 0
    assert "Painting" in capsys.readouterr().out
    rows = query(db_path, "SELECT description FROM service_categories WHERE name = 'Painting'")
    assert rows[0]["description"] == "Walls"
    assert cli.main(["--db", db_path, "add-category", "--name", "Painting"]) == 1
    assert cli.main(["--db", db_path, "add-category", "--name", "   "]) == 1


def test_missing_command_is_a_usage_error(db_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--db", db_path])
    assert exc.value.code == 2
