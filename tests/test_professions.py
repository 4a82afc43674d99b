"""Tests for Professions module."""
from decimal import Decimal

import pytest
from werkzeug.security import generate_password_hash

from app.ems import auth, create_app
from app.ems.db import session_scope
from app.ems.models import Base, Department, DepartmentProfession, Employee, Profession, User
from app.ems.modules.professions.service import professions_for_department

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
    auth._login_attempts.clear()
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _login(client):
    client.post("/auth/login", data={"name": "admin", "password": "pw"}, follow_redirects=True)
    with client.session_transaction() as sess:
        sess["csrf_token"] = CSRF


def _add_professions(app, *names):
    with session_scope(app) as s:
        profs = [Profession(name=n) for n in names]
        s.add_all(profs)
        s.flush()
        return [p.id for p in profs]


def _profession_names(app):
    with session_scope(app) as s:
        return sorted(p.name for p in s.query(Profession).all())


def test_professions_list(client, app):
    _add_professions(app, "Accountant", "Developer")
    _login(client)
    r = client.get("/admin/professions")
    assert r.status_code == 200
    assert b"Accountant" in r.data
    assert b"Developer" in r.data


def test_profession_create(client, app):
    _login(client)
    r = client.post("/admin/professions/new", data={"name": "Recruiter", "csrf_token": CSRF}, follow_redirects=True)
    assert b"Profession added successfully" in r.data
    assert _profession_names(app) == ["Recruiter"]


def test_profession_create_requires_name(client, app):
    _login(client)
    r = client.post("/admin/professions/new", data={"csrf_token": CSRF}, follow_redirects=True)
    assert b"Profession name is required" in r.data
    assert _profession_names(app) == []


def test_profession_edit(client, app):
    (prof_id,) = _add_professions(app, "Recuiter")
    _login(client)
    r = client.post(
        f"/admin/professions/{prof_id}/edit", data={"name": "Recruiter", "csrf_token": CSRF}, follow_redirects=True
    )
    assert b"Profession updated successfully" in r.data
    assert _profession_names(app) == ["Recruiter"]


def test_profession_edit_missing(client):
    _login(client)
    r = client.get("/admin/professions/42/edit", follow_redirects=True)
    assert b"Profession not found" in r.data


def test_profession_delete_removes_exactly_one_row(client, app):
    keep_id, drop_id = _add_professions(app, "Accountant", "Developer")
    with session_scope(app) as s:
        dep = Department(name="Engineering")
        s.add(dep)
        s.flush()
        s.add(DepartmentProfession(department_id=dep.id, profession_id=drop_id))
    _login(client)

    r = client.post(f"/admin/professions/{drop_id}/delete", data={"csrf_token": CSRF}, follow_redirects=True)
    assert b"Profession deleted successfully" in r.data
    with session_scope(app) as s:
        assert s.query(Profession).count() == 1
        assert s.get(Profession, keep_id) is not None
        # association rows go with it
        assert s.query(DepartmentProfession).count() == 0
        assert s.query(Department).count() == 1


def test_profession_delete_in_use_refused(client, app):
    (prof_id,) = _add_professions(app, "Developer")
    with session_scope(app) as s:
        dep = Department(name="Engineering")
        s.add(dep)
        s.flush()
        s.add(DepartmentProfession(department_id=dep.id, profession_id=prof_id))
        s.add(Employee(name="Alice", salary=Decimal("10"), department_id=dep.id, profession_id=prof_id))
    _login(client)
    r = client.post(f"/admin/professions/{prof_id}/delete", data={"csrf_token": CSRF}, follow_redirects=True)
    assert b"reassign them first" in r.data
    assert _profession_names(app) == ["Developer"]


def test_professions_for_department(app):
    dev_id, acc_id, hr_id = _add_professions(app, "Developer", "Accountant", "Recruiter")
    with session_scope(app) as s:
        eng, fin = Department(name="Engineering"), Department(name="Finance")
        s.add_all([eng, fin])
        s.flush()
        s.add_all(
            [
                DepartmentProfession(department_id=eng.id, profession_id=dev_id),
                DepartmentProfession(department_id=eng.id, profession_id=hr_id),
                DepartmentProfession(department_id=fin.id, profession_id=acc_id),
            ]
        )
        eng_id, fin_id = eng.id, fin.id

    with session_scope(app) as s:
        assert [p.name for p in professions_for_department(s, eng_id)] == ["Developer", "Recruiter"]
        assert [p.name for p in professions_for_department(s, fin_id)] == ["Accountant"]
        assert professions_for_department(s, 999) == []
