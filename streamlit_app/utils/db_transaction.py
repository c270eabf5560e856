from functools import wraps
import logging
from config import DB_ERROR_LOG
from utils.errors import SubmissionError, StoreFailure


# Configure logging
logger = logging.getLogger(__name__)
logger.setLevel(logging.ERROR)
handler = logging.FileHandler(DB_ERROR_LOG, delay=True)
formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
handler.setFormatter(formatter)
logger.addHandler(handler)


def transactional(fn):
    """
    Wraps a RecordStore call: any failure rolls the session back, is logged
    and resurfaces as StoreFailure. Domain errors pass through untouched.
    """
    @wraps(fn)
    def wrapper(store, *args, **kwargs):
        try:
            return fn(store, *args, **kwargs)
        except SubmissionError:
            store.db.rollback()
            raise
        except Exception as e:
            store.db.rollback()
            logger.error(f"Database error in {fn.__name__}: {e}", exc_info=True)
            raise StoreFailure(f"Database operation failed in {fn.__name__}: {e}") from e

    return wrapper
