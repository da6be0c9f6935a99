from app.models.bank_account import RepairCenterBankAccount
from app.models.job_status_history import JobStatusHistory
from app.models.notification import Notification
from app.models.payment import Payment
from app.models.payout import PayoutRecord
from app.models.platform_setting import PlatformSetting
from app.models.repair_job import RepairJob

__all__ = [
    "RepairJob",
    "JobStatusHistory",
    "Payment",
    "PayoutRecord",
    "Notification",
    "PlatformSetting",
    "RepairCenterBankAccount",
]
