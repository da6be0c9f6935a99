from app.services.bank_account_service import BankAccountService
from app.services.job_service import JobService
from app.services.notification_service import NotificationService
from app.services.payment_service import PaymentService
from app.services.payout_service import BatchResult, PayoutService
from app.services.quote_service import QuoteService
from app.services.settings_service import PayoutSettings, SettingsService
from app.services.settlement_service import SettlementService

__all__ = [
    "BankAccountService",
    "BatchResult",
    "JobService",
    "NotificationService",
    "PaymentService",
    "PayoutService",
    "PayoutSettings",
    "QuoteService",
    "SettingsService",
    "SettlementService",
]
