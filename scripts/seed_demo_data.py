"""
Seed demo requirements for local verification.
Drives the real workflow as the demo client, AE and verifier so every
role has something to act on.
Run: python -m scripts.seed_demo_data
"""
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from saasoty.core.config import settings
from saasoty.core.rbac import Actor, Role
from saasoty.db.seed import seed_samples
from saasoty.db.session import SessionLocal, init_db
from saasoty.services.identity import get_or_create_demo_user


def seed_demo_data():
    """Seed samples for each demo role."""
    if not settings.SEED_DEMO:
        print("❌ SEED_DEMO is off; set DEBUG=true and SEED_DEMO=true to seed demo data")
        return 1

    init_db()
    db = SessionLocal()
    try:
        for role in (Role.CLIENT, Role.AE, Role.VERIFIER):
            user = get_or_create_demo_user(db, role)
            db.commit()
            actor = Actor.from_user(user)
            result = seed_samples(db, actor)
            if result["created_requirements"]:
                print(f"✅ Seeded {result['created_requirements']} requirement(s) for {user.email}")
            else:
                print(f"✓ Samples already present for {user.email}")
    finally:
        db.close()

    print("\nSign in through POST /api/auth/impersonate with one of: client, ae, verifier")
    return 0


if __name__ == "__main__":
    sys.exit(seed_demo_data())
