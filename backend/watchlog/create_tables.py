from watchlog.db import engine, Base
# Import every model so its table is registered
from watchlog import models  # noqa: F401

def main():
    """Create all database tables"""
    Base.metadata.create_all(bind=engine)
    print("All tables created successfully.")

if __name__ == "__main__":
    main()
