import os
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))

load_dotenv(os.path.join(basedir, '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    API_URL = os.environ.get('API_URL', 'http://localhost:8000')
    API_TIMEOUT = float(os.environ.get('API_TIMEOUT', 10))
    API_MAX_RETRIES = int(os.environ.get('API_MAX_RETRIES', 3))
    API_DEFAULT_LIMIT = int(os.environ.get('API_DEFAULT_LIMIT', 20))
    API_TRANSPORT = None

    CLASS_OPTIONS = ['L1', 'L2', 'L3', 'M1', 'M2']

    TELEGRAM_BOT_TOKEN = os.environ.get('TELEGRAM_BOT_TOKEN', '')
    TELEGRAM_BOT_ENABLED = os.environ.get('TELEGRAM_BOT_ENABLED', 'True').lower() == 'true'

    WEB_HOST = os.environ.get('WEB_HOST', '0.0.0.0')
    WEB_PORT = int(os.environ.get('WEB_PORT', 5000))
