from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()
cache = Cache()
# Default limits come from RATELIMIT_DEFAULT at init_app time.
limiter = Limiter(key_func=get_remote_address)
