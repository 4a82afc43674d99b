"""Tests for Employees module: public listing, admin panel and the two-step create/edit flow."""
from decimal import Decimal

import pytest
from werkzeug.security import generate_password_hash

from app.ems import auth, create_app
from app.ems.db import session_scope
from app.ems.models import Base, Department, Employee, Profession, User

CSRF = "test-csrf-token"


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        s.add(User(name="admin", password_hash=generate_password_hash("pw"), is_admin=True))
        eng, fin = Department(name="Engineering"), Department(name="Finance")
        dev, acc = Profession(name="Developer"), Profession(name="Accountant")
        eng.professions.append(dev)
        fin.professions.append(acc)
        s.add_all([eng, fin, dev, acc])
        s.flush()
        s.add_all(
            [
                Employee(name="Alice Smith", salary=Decimal("5000.00"), department_id=eng.id, profession_id=dev.id),
                Employee(name="Bob Jones", salary=Decimal("4200.50"), department_id=fin.id, profession_id=acc.id),
            ]
        )
        app.config["TEST_IDS"] = {"eng": eng.id, "fin": fin.id, "dev": dev.id, "acc": acc.id}
    auth._login_attempts.clear()
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def ids(app):
    return app.config["TEST_IDS"]


def _login(client):
    client.post("/auth/login", data={"name": "admin", "password": "pw"}, follow_redirects=True)
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF


def _employee(app, name):
    with session_scope(app) as s:
        return s.query(Employee).filter(Employee.name == name).one_or_none()


def _count(app):
    with session_scope(app) as s:
        return s.query(Employee).count()


# ---------- Public list ----------
def test_employees_list_shows_details(client):
    r = client.get("/employees")
    assert r.status_code == 200
    assert b"Alice Smith" in r.data
    assert b"Bob Jones" in r.data
    assert b"5,000.00" in r.data


def test_employees_filter_by_department(client, ids):
    r = client.get(f"/employees?department_id={ids['fin']}")
    assert b"Bob Jones" in r.data
    assert b"Alice Smith" not in r.data


def test_employees_filter_by_profession(client, ids):
    r = client.get(f"/employees?profession_id={ids['dev']}")
    assert b"Alice Smith" in r.data
    assert b"Bob Jones" not in r.data


def test_employees_search_is_case_insensitive_substring(client):
    r = client.get("/employees?search=SMI")
    assert b"Alice Smith" in r.data
    assert b"Bob Jones" not in r.data


def test_employees_search_treats_wildcards_literally(client):
    for term in ("%", "_"):
        r = client.get("/employees", query_string={"search": term})
        assert r.status_code == 200
        assert b"Alice Smith" not in r.data
        assert b"Bob Jones" not in r.data
        assert b"No employees found." in r.data


def test_employees_filters_combine(client, ids):
    r = client.get(f"/employees?department_id={ids['eng']}&search=bob")
    assert b"Alice Smith" not in r.data
    assert b"Bob Jones" not in r.data
    assert b"No employees found." in r.data


def test_employees_blank_or_bad_filters_ignored(client):
    r = client.get("/employees?department_id=&profession_id=abc&search=")
    assert b"Alice Smith" in r.data
    assert b"Bob Jones" in r.data


# ---------- Admin panel ----------
def test_admin_panel_lists_employees_with_names(client):
    _login(client)
    r = client.get("/admin/")
    assert r.status_code == 200
    for needle in (b"Alice Smith", b"Engineering", b"Developer", b"Bob Jones", b"Finance", b"Accountant"):
        assert needle in r.data


# ---------- Create ----------
def test_create_step_one_lists_departments(client):
    _login(client)
    r = client.get("/admin/employees/new")
    assert r.status_code == 200
    assert b"Engineering" in r.data
    assert b"Finance" in r.data


def test_create_step_two_offers_only_department_professions(client, ids):
    _login(client)
    r = client.get(f"/admin/employees/new/details?department_id={ids['eng']}")
    assert r.status_code == 200
    assert b"Developer" in r.data
    assert b"Accountant" not in r.data


def test_create_step_two_requires_department(client):
    _login(client)
    r = client.get("/admin/employees/new/details?department_id=999", follow_redirects=True)
    assert b"Please choose a department" in r.data


def test_create_employee(client, app, ids):
    _login(client)
    r = client.post(
        "/admin/employees/new",
        data={
            "name": "Carol White",
            "salary": "3100.5",
            "department_id": ids["eng"],
            "profession_id": ids["dev"],
            "csrf_token": CSRF,
        },
        follow_redirects=True,
    )
    assert b"Employee added successfully" in r.data
    carol = _employee(app, "Carol White")
    assert carol is not None
    assert carol.salary == Decimal("3100.50")
    assert (carol.department_id, carol.profession_id) == (ids["eng"], ids["dev"])


def test_create_rejects_profession_outside_department(client, app, ids):
    _login(client)
    r = client.post(
        "/admin/employees/new",
        data={
            "name": "Carol White",
            "salary": "100",
            "department_id": ids["eng"],
            "profession_id": ids["acc"],
            "csrf_token": CSRF,
        },
        follow_redirects=True,
    )
    assert b"Profession is not available in the selected department" in r.data
    assert _count(app) == 2


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"name": " "}, b"Employee name is required"),
        ({"salary": "lots"}, b"Salary must be a number"),
        ({"salary": "-1"}, b"Salary cannot be negative"),
        ({"salary": "1e30"}, b"Salary is too large"),
        ({"department_id": "999"}, b"Department not found"),
        ({"profession_id": "999"}, b"Profession not found"),
    ],
)
def test_create_validation(client, app, ids, overrides, message):
    _login(client)
    data = {
        "name": "Carol White",
        "salary": "100",
        "department_id": ids["eng"],
        "profession_id": ids["dev"],
        "csrf_token": CSRF,
    }
    data.update(overrides)
    r = client.post("/admin/employees/new", data=data, follow_redirects=True)
    assert message in r.data
    assert _count(app) == 2


# ---------- Edit ----------
def test_edit_flow(client, app, ids):
    alice = _employee(app, "Alice Smith")
    _login(client)

    r = client.get(f"/admin/employees/{alice.id}/edit")
    assert r.status_code == 200
    assert b"Engineering" in r.data

    r = client.get(f"/admin/employees/{alice.id}/edit/details?department_id={ids['fin']}")
    assert r.status_code == 200
    assert b"Accountant" in r.data
    assert b"Developer" not in r.data

    r = client.post(
        f"/admin/employees/{alice.id}/edit",
        data={
            "name": "Alice Brown",
            "salary": "6000",
            "department_id": ids["fin"],
            "profession_id": ids["acc"],
            "csrf_token": CSRF,
        },
        follow_redirects=True,
    )
    assert b"Employee updated successfully" in r.data
    with session_scope(app) as s:
        updated = s.get(Employee, alice.id)
        assert updated.name == "Alice Brown"
        assert updated.salary == Decimal("6000.00")
        assert (updated.department_id, updated.profession_id) == (ids["fin"], ids["acc"])


def test_edit_rejects_mismatched_profession(client, app, ids):
    alice = _employee(app, "Alice Smith")
    _login(client)
    r = client.post(
        f"/admin/employees/{alice.id}/edit",
        data={
            "name": "Alice Smith",
            "salary": "5000",
            "department_id": ids["fin"],
            "profession_id": ids["dev"],
            "csrf_token": CSRF,
        },
        follow_redirects=True,
    )
    assert b"Profession is not available in the selected department" in r.data
    assert _employee(app, "Alice Smith").department_id == ids["eng"]


def test_edit_missing_employee_404(client):
    _login(client)
    assert client.get("/admin/employees/999/edit").status_code == 404


# ---------- Delete ----------
def test_delete_removes_exactly_one_row(client, app):
    alice = _employee(app, "Alice Smith")
    _login(client)
    r = client.post(f"/admin/employees/{alice.id}/delete", data={"csrf_token": CSRF}, follow_redirects=True)
    assert b"Employee deleted successfully" in r.data
    assert _count(app) == 1
    assert _employee(app, "Alice Smith") is None
    assert _employee(app, "Bob Jones") is not None


def test_delete_missing_employee(client, app):
    _login(client)
    r = client.post("/admin/employees/999/delete", data={"csrf_token": CSRF}, follow_redirects=True)
    assert b"Employee not found" in r.data
    assert _count(app) == 2
