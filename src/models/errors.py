"""
Domain exceptions for the vocabulary notebook
Each carries the HTTP status it maps to at the API boundary
"""


class VocabError(Exception):
    """Base class for errors that reach the client as {"error": message}"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class GroupValidationError(VocabError):
    """Payload is missing required fields or has the wrong shape"""

    status_code = 400


class GroupNotFound(VocabError):
    status_code = 404

    def __init__(self, message: str = "Group not found"):
        super().__init__(message)


class ImageIndexError(VocabError):
    status_code = 400

    def __init__(self, message: str = "Invalid image index"):
        super().__init__(message)


class InvalidImageEncoding(VocabError):
    """Data URI does not match data:image/<subtype>;base64,<payload>"""

    status_code = 400


class StorageUnavailable(VocabError):
    """The document file cannot be read, parsed or written"""

    status_code = 500


class ImageIOFailure(VocabError):
    """An image file could not be written"""

    status_code = 500
