"""
main.py
-------
Small demo against a live database.

Expects a ``users`` table (id SERIAL, name, age, email, created_at) in the
database described by the .env settings:
    python main.py
"""

from models.user import User
from record import close_database, open_database
from utils.logger import get_logger

logger = get_logger(__name__)


def main() -> None:
    open_database()
    try:
        key = User(name="jack", age=20, email="jack@example.com").save()
        logger.info(f"Inserted user #{key}")

        logger.info(f"Users: {User.count()}")
        logger.info(f"Adults with a name: {User.where('age > ?', 17).is_not_null('name').count()}")

        for user in User.in_("id", 1, 2, 3).order("id DESC").all():
            logger.info(f"  {user}")

        missing = User.find_by_id(-1)
        logger.info(f"find_by_id(-1) -> {missing}")
    finally:
        close_database()


if __name__ == "__main__":
    main()
