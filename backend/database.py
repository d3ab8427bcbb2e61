# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# 1. Database URL from settings (.env / environment), SQLite by default
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# 2. Hosted Postgres URLs use the legacy postgres:// scheme, SQLAlchemy needs postgresql://
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)


def make_engine(url: str):
    # SQLite connections are shared with the request threadpool
    if "sqlite" in url:
        connect_args = {"check_same_thread": False}
    else:
        connect_args = {}
    return create_engine(url, connect_args=connect_args)


engine = make_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    register_models()
    Base.metadata.create_all(bind=engine)


def register_models():
    # Import every model module so all tables are attached to Base.metadata
    import models.users  # noqa: F401
    import models.seller  # noqa: F401
    import models.product  # noqa: F401
    import models.address  # noqa: F401
    import models.cart  # noqa: F401
    import models.order  # noqa: F401
    import models.payout  # noqa: F401
    import models.admin  # noqa: F401
    import models.kyc  # noqa: F401
    import models.log  # noqa: F401
