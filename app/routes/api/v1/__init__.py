from flask import Blueprint

from app.routes.api.v1.jobs import api_job_bp
from app.routes.api.v1.notifications import api_notification_bp
from app.routes.api.v1.payments import api_payment_bp
from app.routes.api.v1.payouts import api_payout_bp
from app.routes.api.v1.repair_centers import api_repair_center_bp
from app.routes.api.v1.settings import api_settings_bp

api_v1_bp = Blueprint("api_v1", __name__)
api_v1_bp.register_blueprint(api_job_bp, url_prefix="/jobs")
api_v1_bp.register_blueprint(api_payment_bp, url_prefix="/payments")
api_v1_bp.register_blueprint(api_payout_bp, url_prefix="/payouts")
api_v1_bp.register_blueprint(api_settings_bp, url_prefix="/settings")
api_v1_bp.register_blueprint(api_repair_center_bp, url_prefix="/repair-centers")
api_v1_bp.register_blueprint(api_notification_bp, url_prefix="/notifications")
