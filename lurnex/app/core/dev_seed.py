import logging
import os

from sqlalchemy.orm import Session

from lurnex.app.core.security import get_password_hash
from lurnex.app.core.settings import get_settings
from lurnex.app.models.user import User
from lurnex.app.services import ledger

logger = logging.getLogger(__name__)


def ensure_default_admin(db: Session) -> None:
    """
    Create the bootstrap admin account if no user holds its email yet.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    settings = get_settings()
    if db.query(User).filter(User.email == settings.default_admin_email).first():
        return

    hashed_password = get_password_hash(settings.default_admin_password)
    admin = User(
        email=settings.default_admin_email,
        name="Admin",
        role="admin",
        hashed_password=hashed_password,
        is_temporary_password=False,
        is_active=True,
        status="paid",
    )
    ledger.append_credential_history(admin, hashed_password)
    db.add(admin)
    db.commit()
    logger.info("Created default admin %s", admin.email)
