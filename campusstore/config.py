import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    DATA_DIR = os.environ.get('CAMPUS_DATA_DIR') or 'data'
    TIMEZONE = os.environ.get('CAMPUS_TIMEZONE') or 'Europe/Paris'
    LOG_LEVEL = os.environ.get('CAMPUS_LOG_LEVEL') or 'INFO'

    # Business Rules Defaults
    WORKING_HOURS_START = 8  # 8 AM
    WORKING_HOURS_END = 19   # 7 PM

    # Notification priorities
    CANCELLED_EVENT_PRIORITY = 0
    DECISION_PRIORITY = 1
    BROADCAST_PRIORITY = 2

    # Id bands used by the broadcast audiences
    FACULTY_ID_FLOOR = 200
    STUDENT_ID_FLOOR = 300

class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get('CAMPUS_LOG_LEVEL') or 'DEBUG'

class TestingConfig(Config):
    TESTING = True
    DATA_DIR = os.environ.get('CAMPUS_TEST_DATA_DIR') or 'test_data'

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
