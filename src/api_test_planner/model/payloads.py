"""Fixed payload catalogs and format defaults used during value synthesis."""

SQL_INJECTION_PAYLOADS = (
    "'; DROP TABLE users; --",
    "' OR '1'='1",
    "admin'--",
    "'; INSERT INTO users VALUES ('hacker', 'password'); --",
    "1' UNION SELECT * FROM sensitive_table--",
)

XSS_PAYLOADS = (
    "<script>alert('XSS')</script>",
    "<img src=x onerror=alert('XSS')>",
    "javascript:alert('XSS')",
    "<svg onload=alert('XSS')>",
    "'+alert('XSS')+'",
    "\"><script>alert('XSS')</script>",
)

PATH_TRAVERSAL_PAYLOADS = (
    "../../../etc/passwd",
    "..\\..\\..\\windows\\win.ini",
    "%2e%2e%2f%2e%2e%2fetc%2fpasswd",
    "....//....//etc/passwd",
)

# Installed on constraints whose security level is HIGH or CRITICAL.
BLACKLIST_PATTERNS = (
    r"(?i)<script",
    r"(?i)\b(union|select|insert|delete|update|drop)\b",
    r"['\";]",
    r"\.\.",
)

EDGE_STRINGS = (
    "ñáéíóú 日本語 🚀",
    "!@#$%^&*()_+-=[]{}|",
    " leading and trailing ",
    "\t\n",
)

INVALID_TYPE_SAMPLES = {
    "string": 12345,
    "integer": "not-a-number",
    "number": "not-a-number",
    "boolean": "yes",
    "array": "not-an-array",
    "object": "not-an-object",
}

INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"

LARGE_STRING_LENGTH = 10_000
LARGE_ARRAY_LENGTH = 1_000

# -- format defaults ----------------------------------------------------------

FORMAT_PATTERNS = {
    "email": r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$",
    "uuid": r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$",
    "date": r"^\d{4}-\d{2}-\d{2}$",
    "date-time": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?$",
    "ipv4": (
        r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
        r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
    ),
    "ipv6": r"^(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}$",
}

# (min_length, max_length)
FORMAT_LENGTHS = {
    "email": (None, 320),
    "uri": (None, 2048),
    "uuid": (36, 36),
}

FORMAT_BOUNDS = {
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
}

FORMAT_VALID_EXAMPLES = {
    "email": ("user@example.com", "first.last+tag@sub.example.org"),
    "uuid": ("123e4567-e89b-12d3-a456-426614174000",),
    "date": ("2024-01-15",),
    "date-time": ("2024-01-15T10:30:00Z",),
    "ipv4": ("192.168.1.1",),
    "ipv6": ("2001:0db8:85a3:0000:0000:8a2e:0370:7334",),
    "uri": ("https://example.com/resource",),
    "password": ("S3cure-Passw0rd",),
}

FORMAT_INVALID_EXAMPLES = {
    "email": ("plainaddress", "user@", "@example.com"),
    "uuid": ("123e4567", "not-a-uuid"),
    "date": ("15/01/2024", "2024-13"),
    "date-time": ("2024-01-15 10:30", "yesterday"),
    "ipv4": ("256.256.256.256", "1.2.3"),
    "ipv6": ("2001:db8::zzzz", "::::"),
    "uri": ("not a uri",),
    "password": ("", "123"),
}
