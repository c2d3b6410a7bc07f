# errors.py
from __future__ import annotations


class ExportParseError(ValueError):
    """Error fatal al parsear un archivo exportado. No se reintenta."""


class UnrecognizedFormatError(ExportParseError):
    def __init__(self, message: str = (
        "Unrecognized export format. "
        "Please use Telegram Desktop to export as JSON or HTML."
    )):
        super().__init__(message)


class InvalidExportShapeError(ExportParseError):
    def __init__(self, message: str = (
        "Invalid Telegram export format: messages array not found"
    )):
        super().__init__(message)


class PayloadTooLargeError(ExportParseError):
    def __init__(self, size: int, limit: int):
        super().__init__(
            f"Export too large: {size} bytes (limit {limit} bytes)"
        )
        self.size = size
        self.limit = limit


class EmptyExportError(ExportParseError):
    def __init__(self, name: str):
        super().__init__(f"Export file has no content: {name}")
        self.name = name
