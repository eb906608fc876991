from slowapi import Limiter

from core.config import RATE_LIMIT_ENABLED
from api.dependencies import client_ip

limiter = Limiter(key_func=client_ip, enabled=RATE_LIMIT_ENABLED)
