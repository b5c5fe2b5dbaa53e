"""
Domain errors raised by the catalog repositories.

Each error kind carries the message and HTTP status the API answers with.
Only InternalServerError is unexpected; every other kind is an ordinary
domain outcome.
"""


class AppError(Exception):
    kind = "InternalServerError"
    message = "An internal server error ocurred."
    status_code = 500

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def __str__(self):
        return self.message


class Empty(AppError):
    kind = "Empty"
    message = "Empty List"
    status_code = 204


class NotFound(AppError):
    kind = "NotFound"
    message = "Entity not found"
    status_code = 404


class NotExists(AppError):
    kind = "NotExists"
    message = "Entity does not exist"
    status_code = 404


class CannotParseObjId(AppError):
    kind = "CannotParseObjId"
    message = "Failed to parse id (id not valid)"
    status_code = 400


class WrongImdbId(AppError):
    kind = "WrongImdbId"
    message = "ImdbId malformed (imdbId not valid)"
    status_code = 400


class AlreadyExists(AppError):
    kind = "AlreadyExists"
    message = "Entity already exists"
    status_code = 409


class ImdbIdInUse(AppError):
    kind = "ImdbIdInUse"
    message = "ImdbId already in use"
    status_code = 409


class FieldNotAllowed(AppError):
    kind = "FieldNotAllowed"
    message = "Field not allowed"
    status_code = 400


class InvalidFieldValue(AppError):
    kind = "InvalidFieldValue"
    message = "Field value not valid"
    status_code = 400


class InternalServerError(AppError):
    pass
