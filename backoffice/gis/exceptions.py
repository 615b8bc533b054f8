"""
GIS error hierarchy; every error carries the message and HTTP status the routes return
"""

class GISError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class GISAccessDeniedError(GISError):
    status_code = 403

    def __init__(self, message: str = "Access denied: GIS scraper not available for your organization"):
        super().__init__(message)

class PropertyNotFoundError(GISError):
    status_code = 400

class PropertyStateError(GISError):
    status_code = 400

class GISPersistenceError(GISError):
    """Database failure; the underlying error is logged, never returned"""
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
