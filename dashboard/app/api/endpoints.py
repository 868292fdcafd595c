"""REST endpoint paths consumed by the client."""

API_PREFIX = "/api/v1"

# Auth
AUTH_LOGIN = f"{API_PREFIX}/auth/login"
AUTH_REGISTER = f"{API_PREFIX}/auth/register"
AUTH_LOGOUT = f"{API_PREFIX}/auth/logout"
AUTH_LOGOUT_ALL = f"{API_PREFIX}/auth/logout-all"
AUTH_REFRESH = f"{API_PREFIX}/auth/refresh"
AUTH_VERIFY_EMAIL = f"{API_PREFIX}/auth/verify-email"
AUTH_RESEND_VERIFICATION = f"{API_PREFIX}/auth/resend-verification"
AUTH_PROFILE = f"{API_PREFIX}/auth/profile"

# Categories
CATEGORIES = f"{API_PREFIX}/categories"


def category(category_id: str) -> str:
    return f"{CATEGORIES}/{category_id}"


def category_documents(category_id: str) -> str:
    return f"{CATEGORIES}/{category_id}/documents"


def category_document(category_id: str, document_id: str) -> str:
    return f"{CATEGORIES}/{category_id}/documents/{document_id}"


def category_documents_bulk(category_id: str) -> str:
    return f"{CATEGORIES}/{category_id}/documents/bulk"


def category_path(category_id: str) -> str:
    return f"{CATEGORIES}/{category_id}/path"


def category_descendants(category_id: str) -> str:
    return f"{CATEGORIES}/{category_id}/descendants"


def document_category_assignments(document_id: str) -> str:
    return f"{CATEGORIES}/documents/{document_id}/categories"


# Documents
DOCUMENTS = f"{API_PREFIX}/documents"
DOCUMENTS_UPLOAD = f"{DOCUMENTS}/upload"
DOCUMENTS_BULK_CATEGORIZE = f"{DOCUMENTS}/categorize/bulk"


def document(document_id: str) -> str:
    return f"{DOCUMENTS}/{document_id}"


def document_download(document_id: str) -> str:
    return f"{DOCUMENTS}/{document_id}/download"


def document_categorize(document_id: str) -> str:
    return f"{DOCUMENTS}/{document_id}/categorize"
