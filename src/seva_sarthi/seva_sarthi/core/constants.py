"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import PermissionAction, PermissionModule, SystemRole

# Lower level = more senior role.
SYSTEM_ROLE_LEVELS = {
    SystemRole.SUPER_ADMIN.value: 1,
    SystemRole.SANT_NIRDESHAK.value: 2,
    SystemRole.SAH_NIRDESHAK.value: 3,
    SystemRole.MANDAL_SANCHALAK.value: 4,
    SystemRole.KARYAKAR.value: 5,
    SystemRole.SEVAK.value: 6,
}

# Level assumed for a role missing from role_hierarchy when listing assignable roles.
UNRANKED_ROLE_LEVEL = 99

DEFAULT_MEMBER_ROLE = SystemRole.SEVAK.value
MEMBER_EMAIL_DOMAIN = "sevasarthi.org"

ALL_MODULES = tuple(m.value for m in PermissionModule)
ALL_ACTIONS = tuple(a.value for a in PermissionAction)

MAX_TEXT_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
STRONG_PASSWORD_MIN_LENGTH = 8
STRONG_PASSWORD_MIN_SCORE = 3

DEFAULT_MESSAGE_LIMIT = 50
DEFAULT_AUDIT_LIMIT = 100
DEFAULT_PASSWORD_RESET_HOURS = 24

DEFAULT_LOGIN_MAX_ATTEMPTS = 5
DEFAULT_LOGIN_WINDOW_SECONDS = 15 * 60

MAX_PHOTO_BYTES = 5 * 1024 * 1024
PHOTO_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp", "image/gif": ".gif"}
ALLOWED_PHOTO_TYPES = tuple(PHOTO_EXTENSIONS)
# accepted on the client filename; the stored name always uses PHOTO_EXTENSIONS
ALLOWED_PHOTO_FILE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif")
DANGEROUS_EXTENSIONS = (".exe", ".bat", ".cmd", ".scr", ".pif", ".vbs", ".js")

SEARCH_MIN_TERM_LENGTH = 2
SEARCH_PRIMARY_LIMIT = 5
SEARCH_SECONDARY_LIMIT = 3

REPORT_RANGE_DAYS = {"week": 7, "month": 30, "year": 365}

# karyakar additional details
EDUCATION_LEVELS = (
    "Primary",
    "Secondary",
    "Higher Secondary",
    "Diploma",
    "Graduate",
    "Post Graduate",
    "PhD",
    "Other",
)
VEHICLE_TYPES = ("Two Wheeler", "Four Wheeler", "Heavy Vehicle", "Bicycle", "Other")
BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
MARITAL_STATUSES = ("married", "unmarried")
SATSANGI_CATEGORIES = ("Bal Satsangi", "Kishore/Kishori", "Yuvak/Yuvati", "Vadil", "Other")
COMMON_SKILLS = (
    "Leadership",
    "Communication",
    "Event Management",
    "Teaching",
    "Music",
    "Art & Craft",
    "Photography",
    "Technology",
    "Cooking",
    "First Aid",
    "Driving",
    "Other",
)
MAX_SKILL_LENGTH = 100
