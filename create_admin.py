"""
Script to create an admin user or promote/reset an existing one.
Run: python create_admin.py email@example.com "Password@123" ["Full Name"]
"""
import sys
import getpass

from app import create_app
from models import db
from models.user import User
from utils.validators import normalize_email, validate_email, validate_password


def create_admin(email, password, name='Administrator'):
    """Create or reset an admin user. Returns the user."""
    app = create_app()

    with app.app_context():
        user = User.query.filter_by(email=email).first()

        if user:
            user.is_admin = True
            user.is_active = True
            user.set_password(password)
            print("[SUCCESS] Existing user promoted to admin and password reset.")
        else:
            user = User(name=name, email=email, is_admin=True, is_active=True)
            user.set_password(password)
            db.session.add(user)
            print("[SUCCESS] Admin user created.")
        db.session.commit()
        return user


def main():
    if len(sys.argv) < 2:
        print("Usage: python create_admin.py <email> [password] [name]")
        sys.exit(1)

    email = normalize_email(sys.argv[1])
    if not validate_email(email):
        print("Invalid email address.")
        sys.exit(1)

    if len(sys.argv) >= 3:
        password = sys.argv[2]
    else:
        password = getpass.getpass("Enter admin password: ")
        if password != getpass.getpass("Confirm password: "):
            print("Passwords do not match. Aborted.")
            sys.exit(1)

    ok, error = validate_password(password, email=email)
    if not ok:
        print(error)
        sys.exit(1)

    name = sys.argv[3] if len(sys.argv) >= 4 else 'Administrator'
    create_admin(email, password, name)
    print("Login at /login with", email)


if __name__ == '__main__':
    main()
