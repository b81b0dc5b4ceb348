"""
Domain errors raised by the catalog services.
The API layer maps them to HTTP responses in main.py.
"""


class CatalogError(Exception):
    """Base class for catalog service errors"""
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(CatalogError):
    """Referenced movie, user, rating or watchlist entry does not exist"""
    status_code = 404


class ConflictError(CatalogError):
    """Uniqueness rule violated (duplicate watchlist entry, duplicate movie, rating race)"""
    status_code = 409
