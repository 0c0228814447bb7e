"""Fixed word lists used by the classification heuristics.

Names are normalized (lower-cased, ``_`` and ``-`` removed) before they are
matched by substring against these lists.
"""

CREDENTIAL_TERMS = (
    "password", "passwd", "secret", "token", "key", "auth", "credential",
    "session", "otp",
)

PERSONAL_TERMS = (
    "email", "phone", "mobile", "address", "firstname", "lastname", "fullname",
    "birth", "dob", "ssn", "passport", "nationalid", "gender", "zipcode",
    "postcode",
)

FINANCIAL_TERMS = (
    "creditcard", "cardnumber", "cvv", "cvc", "iban", "accountnumber",
    "routingnumber", "bankaccount", "payment", "salary",
)

SYSTEM_CRITICAL_TERMS = (
    "admin", "root", "role", "permission", "privilege", "config", "system",
    "superuser",
)

FILE_PATH_TERMS = (
    "file", "path", "dir", "folder", "filename", "upload", "attachment",
)

DATABASE_QUERY_TERMS = (
    "query", "filter", "search", "sort", "orderby", "where", "sql",
)

IDENTIFIER_SUFFIX = "id"
IDENTIFIER_TERMS = ("uuid", "slug")

HIGH_TRAFFIC_TAGS = ("public", "api")
ADMIN_TAGS = ("admin",)

BULK_TERMS = ("bulk", "batch", "import")

AUTH_HEADERS = ("authorization", "xapikey")


def normalize(name: str) -> str:
    return name.lower().replace("_", "").replace("-", "")


def matches(name: str, terms: tuple[str, ...]) -> bool:
    """Substring match of a normalized name against a word list."""
    normalized = normalize(name)
    return any(term in normalized for term in terms)
