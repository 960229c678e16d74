import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from enrol_credit.core.config import get_settings
from enrol_credit.models import (
    AuditLog,
    Counter,
    Course,
    CourseGroup,
    CreditBalance,
    CreditLedgerEntry,
    EnrolInstance,
    User,
    UserEnrolment,
)

DOCUMENT_MODELS = [
    User,
    Course,
    CourseGroup,
    EnrolInstance,
    UserEnrolment,
    CreditBalance,
    CreditLedgerEntry,
    AuditLog,
    Counter,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db(client=None) -> None:
    """Bind beanie documents. A pre-built client (tests) skips connection setup."""
    settings = get_settings()
    if client is None:
        kwargs = {}
        if _use_tls(settings.mongodb_uri):
            kwargs["tlsCAFile"] = certifi.where()
            kwargs["tlsDisableOCSPEndpointCheck"] = True
        client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
