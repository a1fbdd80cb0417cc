from typing import Optional

from fastapi import HTTPException


class MovieVaultError(HTTPException):
    """
    Base for every error the services raise. Subclasses pin the HTTP
    status so FastAPI can render them without extra handlers.
    """

    status_code = 500

    def __init__(self, detail: str, headers: Optional[dict] = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail, headers=headers)


class ValidationError(MovieVaultError):
    status_code = 400


class FileTooLargeError(MovieVaultError):
    status_code = 413


class NotFoundError(MovieVaultError):
    status_code = 404


class RangeNotSatisfiableError(MovieVaultError):
    status_code = 416

    def __init__(self, file_size: int, detail: str = "Invalid Range header") -> None:
        super().__init__(detail, headers={"Content-Range": f"bytes */{file_size}"})
        self.file_size = file_size


class StorageError(MovieVaultError):
    status_code = 500


class PersistenceError(MovieVaultError):
    status_code = 500
