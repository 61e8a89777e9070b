"""
Bootstrap seed: creates a center and its first super-admin.

Run once against an empty database (after ``alembic upgrade head``):
    python seed_superadmin.py <center-code> <center-name> <username> <password>

The super-admin can then sign in at POST /admin/login and approve account
requests for every other center. Re-running with an existing username only
reports the existing account.
"""
import sys

from shopdesk.database import SessionLocal
from shopdesk.models.admin_user import AdminUser
from shopdesk.models.center import Center
from shopdesk.utils.passwords import hash_password


def main(argv):
    if len(argv) != 4:
        print(__doc__)
        sys.exit(2)
    code, name, username, password = argv

    db = SessionLocal()
    try:
        center = db.query(Center).filter(Center.code == code).first()
        if center is None:
            center = Center(code=code, name=name)
            db.add(center)
            db.flush()
            print(f"  ✓ Created center {name} ({code})")
        else:
            print(f"  ✓ Found existing center {center.name} ({code})")

        user = db.query(AdminUser).filter(AdminUser.username == username).first()
        if user is not None:
            print(f"  ✓ User {username} already exists (superadmin={user.is_superadmin})")
            db.commit()
            return

        db.add(AdminUser(
            username=username,
            password_hash=hash_password(password),
            center_id=center.id,
            is_active=True,
            is_superadmin=True,
        ))
        db.commit()
        print(f"  ✓ Created super-admin {username}")
    finally:
        db.close()


if __name__ == "__main__":
    main(sys.argv[1:])
