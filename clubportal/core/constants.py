"""Global constants for the clubportal application."""

# Collection names
PROFILES = "profiles"
USER_ROLES = "user_roles"
GROUPS = "groups"
MEMBER_GROUPS = "member_groups"
TASKS = "tasks"
CERTIFICATES = "certificates"
PRESENCES = "presences"
COMPETITION_ROBOTS = "competition_robots"
COMPETITION_SIGNUPS = "competition_signups"
MESSAGES = "messages"
NEWS = "news"
EVENTS = "events"
PROJECTS = "projects"
ANNOUNCEMENTS = "announcements"
SITE_SETTINGS = "site_settings"

# Session keys
SESSION_ID_TOKEN = "id_token"  # nosec B105
SESSION_REFRESH_TOKEN = "refresh_token"  # nosec B105
SESSION_USER_ID = "user_id"
SESSION_WELCOME_SHOWN = "welcome_popup_shown"

# Chat
ADMIN_CHANNEL = "admin"
CHAT_POLL_INTERVAL_MS = 2000
CHAT_STREAM_HEARTBEAT_SECONDS = 15

# Validation bounds
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
INTERVIEW_LOCATION_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 2000

# Groups
MIN_GROUPS_TO_SHUFFLE = 2
MIN_MEMBERS_TO_SHUFFLE = 2

PENDING_APPROVAL_MESSAGE = (
    "Wait until your application gets approved and become one of us "
    "then you can connect to your space"
)
