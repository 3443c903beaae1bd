from flask import jsonify


class InvalidRequest(Exception):
    """A request the API cannot turn into an engine call (bad side, bad body)."""
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


def register_error_handlers(flask_app) -> None:
    @flask_app.errorhandler(InvalidRequest)
    def handle_invalid_request(exc):
        return jsonify({'error': exc.message}), exc.status_code
