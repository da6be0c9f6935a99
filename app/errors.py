from flask import jsonify
from sqlalchemy.exc import IntegrityError


class AppError(Exception):
    status_code = 400
    code = "app_error"
    default_message = "Request could not be processed."

    def __init__(self, message=None, status_code=None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidTransition(AppError):
    status_code = 409
    code = "invalid_transition"
    default_message = "Invalid status transition."


class TerminalState(AppError):
    status_code = 409
    code = "terminal_state"
    default_message = "Job is already in a terminal state."


class ConcurrentModification(AppError):
    status_code = 409
    code = "concurrent_modification"
    default_message = "Record was modified by another request. Reload and retry."


class InvalidAmount(AppError):
    status_code = 400
    code = "invalid_amount"
    default_message = "Amount must be greater than zero."


class CurrencyMismatch(AppError):
    status_code = 400
    code = "currency_mismatch"
    default_message = "Amounts in different currencies cannot be combined."


class QuoteExpired(AppError):
    status_code = 409
    code = "quote_expired"
    default_message = "Quote response deadline has passed."


class MissingReference(AppError):
    status_code = 400
    code = "missing_reference"
    default_message = "Payout reference is required."


class BelowThreshold(AppError):
    status_code = 409
    code = "below_threshold"
    default_message = "Payout amount is below the minimum payout threshold."


class AlreadyDisputed(AppError):
    status_code = 409
    code = "already_disputed"
    default_message = "Payout is already disputed."


class InvalidState(AppError):
    status_code = 409
    code = "invalid_state"
    default_message = "Record is not in a valid state for this action."


class PayoutDisputed(InvalidState):
    code = "payout_disputed"
    default_message = "Payout is disputed and cannot be processed."


class MissingBankAccount(AppError):
    status_code = 409
    code = "missing_bank_account"
    default_message = "Repair center has no whitelisted bank account."


class PaymentNotConfirmed(AppError):
    status_code = 409
    code = "payment_not_confirmed"
    default_message = "Payment must be completed first."


class PayoutFailed(AppError):
    status_code = 502
    code = "payout_failed"
    default_message = "Payout transfer failed."


def error_payload(err):
    return {"error": err.message, "code": err.code}


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return jsonify(error_payload(err)), err.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        app.logger.warning("Database integrity error")
        return jsonify({"error": "Conflict. Resource already exists.", "code": "conflict"}), 409

    @app.errorhandler(400)
    def bad_request(_err):
        return jsonify({"error": "Bad request", "code": "bad_request"}), 400

    @app.errorhandler(404)
    def not_found(_err):
        return jsonify({"error": "Not found", "code": "not_found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return jsonify({"error": "Method not allowed", "code": "method_not_allowed"}), 405

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return jsonify({"error": "Internal server error", "code": "server_error"}), 500
