# plate_inventory/exceptions.py

class APIException(Exception):
    """Base API exception, rendered as {"detail": message} by the app's handler"""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class InvalidImageError(APIException):
    """Unsupported or corrupted image upload"""
    def __init__(self, message: str = "Invalid image format"):
        super().__init__(message, 400)

class FileSizeError(APIException):
    """Upload exceeds the size limit"""
    def __init__(self, message: str = "File size too large"):
        super().__init__(message, 413)

class ImageLoadError(InvalidImageError):
    """Source image could not be decoded"""
    def __init__(self, message: str = "Image load error"):
        super().__init__(message)

class CanvasUnavailable(APIException):
    """Output surface could not be allocated or encoded"""
    def __init__(self, message: str = "Canvas not supported"):
        super().__init__(message, 500)

class RecognitionFailure(APIException):
    """No plate detected, or the recognition service failed"""
    def __init__(self, message: str = "Could not detect a valid plate number", status_code: int = 422, reason: str = None):
        self.reason = reason
        super().__init__(message, status_code)

class UploadFailure(APIException):
    """Blob store rejected the image"""
    def __init__(self, message: str = "Image upload failed"):
        super().__init__(message, 502)

class PersistenceFailure(APIException):
    """Insert or delete rejected by the database"""
    def __init__(self, message: str = "Failed to save record"):
        super().__init__(message, 500)

class FileParseFailure(APIException):
    """Malformed or unsupported spreadsheet"""
    def __init__(self, message: str = "Failed to read file"):
        super().__init__(message, 400)

class ManifestFetchFailure(APIException):
    """Warehouse manifest could not be loaded"""
    def __init__(self, message: str = "Failed to load warehouse inventory"):
        super().__init__(message, 503)

class SessionNotFound(APIException):
    def __init__(self, session_id: str):
        super().__init__(f"Capture session '{session_id}' not found", 404)

class PendingPlateConflict(APIException):
    def __init__(self, message: str):
        super().__init__(message, 409)
