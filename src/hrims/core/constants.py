"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

API_PREFIX = "/api/v1"

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Loans
MAX_REPAYMENT_TO_SALARY_RATIO = 0.40
DEFAULT_OVERTIME_RATE = 1.0
DEFAULT_MAX_APPROVAL_LEVEL = "M11"

# Working time used to derive an hourly rate from an annual salary.
WORKING_DAYS_PER_YEAR = 260
WORKING_HOURS_PER_DAY = 8

# Grade levels from which onboarding derives supervisor/manager flags.
SUPERVISOR_GRADE_LEVEL = 6
DEPARTMENT_MANAGER_GRADE_LEVEL = 10

# Auth
MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_MINUTES = 30
DEFAULT_ACCESS_TOKEN_EXPIRES_SECONDS = 8 * 60 * 60
DEFAULT_REFRESH_TOKEN_EXPIRES_DAYS = 7
MIN_PASSWORD_LENGTH = 8
TEMP_PASSWORD_LENGTH = 12

# Travel
DEFAULT_TRAVEL_MAX_DAYS = 30
# Accommodation under PER_DIEM_ONLY is paid as this share of the per diem.
PER_DIEM_ACCOMMODATION_SHARE = 0.5

# Avatars
AVATAR_MAX_BYTES = 2 * 1024 * 1024
AVATAR_SIZE = (256, 256)
AVATAR_FORMATS = ("PNG", "JPEG", "GIF", "WEBP")
