import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'dev-insecure-secret-key')
DEBUG = _env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', '*').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django.contrib.staticfiles',
    'rest_framework',
    'drf_spectacular',
    'guide',
    'ai',
    'farm',
    'weather',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'smart_farm_platform.urls'
WSGI_APPLICATION = 'smart_farm_platform.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {'context_processors': []},
    },
]

# El estado vive en el árbol compartido; la base relacional solo la usa Django internamente
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('TIME_ZONE', 'Asia/Kolkata')
USE_I18N = False
USE_TZ = True

STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': ['rest_framework.permissions.AllowAny'],
    'UNAUTHENTICATED_USER': None,
    'EXCEPTION_HANDLER': 'smart_farm_platform.exceptions.farm_exception_handler',
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Smart Farm API',
    'DESCRIPTION': 'Guía diaria de cultivo, sensores, controles y asistentes IA.',
    'VERSION': '1.0.0',
}

# --- Árbol compartido (guide, SMART_FARM/...) ---
TREE_STORE_BACKEND = os.getenv('TREE_STORE_BACKEND', 'memory')  # memory | mongo | firebase
MONGO_URL = os.getenv('MONGO_URL')
MONGO_DB = os.getenv('MONGO_DB', 'smart_farm')
MONGO_TREE_COLLECTION = os.getenv('MONGO_TREE_COLLECTION', 'tree')
FIREBASE_DATABASE_URL = os.getenv('FIREBASE_DATABASE_URL')
FIREBASE_AUTH_TOKEN = os.getenv('FIREBASE_AUTH_TOKEN')
STORE_TIMEOUT = int(os.getenv('STORE_TIMEOUT', '10'))

# --- Proveedores IA ---
GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash-exp')
GEMINI_API_URL = os.getenv('GEMINI_API_URL', 'https://generativelanguage.googleapis.com/v1beta')
AI_GATEWAY_URL = os.getenv('AI_GATEWAY_URL', 'https://ai.gateway.lovable.dev/v1/chat/completions')
AI_GATEWAY_API_KEY = os.getenv('AI_GATEWAY_API_KEY') or os.getenv('LOVABLE_API_KEY')
AI_GATEWAY_MODEL = os.getenv('AI_GATEWAY_MODEL', 'google/gemini-2.5-flash-lite')
AI_TIMEOUT = int(os.getenv('AI_TIMEOUT', '60'))

# --- Clima ---
OPENWEATHERMAP_API_KEY = os.getenv('OPENWEATHERMAP_API_KEY')
OPENWEATHERMAP_API_URL = os.getenv('OPENWEATHERMAP_API_URL', 'https://api.openweathermap.org/data/2.5')

# --- Guía diaria ---
GUIDE_DEFAULT_LANGUAGE = os.getenv('GUIDE_DEFAULT_LANGUAGE', 'en')
GUIDE_GENERATION_TIMEOUT = int(os.getenv('GUIDE_GENERATION_TIMEOUT', '30'))
GUIDE_KEEP_HISTORY_ON_START = _env_bool('GUIDE_KEEP_HISTORY_ON_START', True)

# --- Celery ---
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    'auto-daily-guide': {
        'task': 'guide.tasks.auto_daily_guide',
        'schedule': float(os.getenv('GUIDE_AUTO_INTERVAL_SECONDS', '1800')),
    },
}

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {'format': '%(asctime)s %(levelname)s %(name)s %(message)s'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'simple'},
    },
    'root': {'handlers': ['console'], 'level': LOG_LEVEL},
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
    },
}
