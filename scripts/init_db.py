import argparse
import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script (Windows-friendly).
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.ems.models import Department, Profession, User
from scripts._db_utils import database_url, script_session

SAMPLE_DEPARTMENTS = {
    "Engineering": ("Software Engineer", "QA Engineer"),
    "Finance": ("Accountant",),
    "Human Resources": ("Recruiter", "HR Manager"),
}


def seed_only(*, database_url_override: str | None = None, with_sample_data: bool = False) -> None:
    """
    Seed the admin user in an idempotent way.
    Does NOT overwrite an existing admin user's password.
    """
    admin_name = (os.environ.get("ADMIN_NAME") or "admin").strip()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"

    with script_session(database_url(database_url_override)) as s:
        user = s.query(User).filter(User.name == admin_name).one_or_none()
        if not user:
            user = User(name=admin_name, password_hash=generate_password_hash(admin_password), is_admin=True)
            s.add(user)
        user.is_admin = True

        if with_sample_data:
            professions: dict[str, Profession] = {p.name: p for p in s.query(Profession).all()}
            for dep_name, prof_names in SAMPLE_DEPARTMENTS.items():
                dep = s.query(Department).filter(Department.name == dep_name).one_or_none()
                if not dep:
                    dep = Department(name=dep_name)
                    s.add(dep)
                for prof_name in prof_names:
                    prof = professions.get(prof_name)
                    if not prof:
                        prof = professions[prof_name] = Profession(name=prof_name)
                        s.add(prof)
                    if prof not in dep.professions:
                        dep.professions.append(prof)

    print("Initialized database (seed_only).")
    print(f"Admin name: {admin_name}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--with-sample-data", action="store_true", help="Also create a few departments and professions")
    args = parser.parse_args()
    seed_only(with_sample_data=args.with_sample_data)


if __name__ == "__main__":
    main()
