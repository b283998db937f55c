# backend/create_initial_admin.py

from datetime import timedelta

from stockdb.database import SessionLocal
from stockdb.apps.accounts import models as account_models
from stockdb.security import create_access_token


def main() -> None:
    db = SessionLocal()
    try:
        email = "admin@stockdb.local"

        user = db.query(account_models.User).filter(account_models.User.email == email).first()
        if user:
            print(f"[INFO] User already exists: id={user.id}, email={user.email}")
        else:
            user = account_models.User(
                email=email,
                first_name="Stock",
                last_name="Admin",
                role=account_models.AccountRole.ADMIN,
                is_active=True,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            print("[OK] Created admin user:")
            print(f"  id:      {user.id}")
            print(f"  email:   {user.email}")
            print(f"  role:    {user.role.value}")

        token = create_access_token(
            data={"sub": user.id, "role": user.role.value},
            expires_delta=timedelta(days=1),
        )
        print(f"  bearer token (24h): {token}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
