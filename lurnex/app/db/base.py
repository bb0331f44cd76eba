from lurnex.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from lurnex.app.models.user import User  # noqa: F401
from lurnex.app.models.batch import Batch, BatchAssignment  # noqa: F401
from lurnex.app.models.class_session import ClassSession  # noqa: F401
from lurnex.app.models.links import BatchSessionLink, Enrollment, SessionRosterLink  # noqa: F401
from lurnex.app.models.ledger import HoursLedgerEntry, TeachingLedgerEntry  # noqa: F401
from lurnex.app.models.credential_history import CredentialHistoryEntry  # noqa: F401
from lurnex.app.models.purchase_request import PurchaseRequest  # noqa: F401
from lurnex.app.models.assessment import Assessment, Submission  # noqa: F401
