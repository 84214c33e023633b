#!/usr/bin/env python3
"""
Create Admin Script

Seeds an admin account; public registration only creates interns and mentors.
Reads MONGODB_URI (and the rest of the settings) from the environment / .env.

Run: python scripts/create_admin.py "Admin Name" admin@example.com
"""
import getpass
import sys
sys.path.insert(0, '.')

from pydantic import ValidationError as SchemaError

from internship_portal.core.config import get_settings
from internship_portal.core.errors import PortalError
from internship_portal.db.mongodb import MongoStore
from internship_portal.schemas.schemas import RegisterRequest, UserRole
from internship_portal.services.user_service import UserService


def main() -> int:
    if len(sys.argv) != 3:
        print(__doc__)
        return 2
    name, email = sys.argv[1], sys.argv[2]

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("❌ Passwords do not match")
        return 1

    settings = get_settings()
    store = MongoStore(settings.mongodb_uri, settings.mongodb_db)
    try:
        if not store.ping():
            print("❌ MongoDB is not reachable")
            return 1
        store.init_indexes()

        request = RegisterRequest(name=name, email=email, password=password, role=UserRole.admin)
        user, _ = UserService(store, settings).register(request)
        print(f"✅ Admin created: {user['email']} ({user['id']})")
        return 0
    except SchemaError as e:
        print(f"❌ Invalid input: {e}")
        return 1
    except PortalError as e:
        print(f"❌ {e.message}")
        return 1
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
