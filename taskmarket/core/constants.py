CATEGORIES = [
    "Video Editing",
    "Reel Creation",
    "Photography",
    "Content Writing",
    "Social Media Management",
    "Graphic Design",
    "Influencer Marketing",
    "Other",
]

SORT_OPTIONS = ["newest", "oldest", "budget_high", "budget_low"]

ROLES = ["business_owner", "freelancer", "admin"]
TASK_STATUSES = ["open", "in_progress", "completed", "cancelled"]
APPLICATION_STATUSES = ["pending", "accepted", "rejected"]

# Collection names in Firestore
USERS = "users"
TASKS = "tasks"
APPLICATIONS = "applications"
NOTIFICATIONS = "notifications"

REQUIRED_REELS = 3
MAX_REEL_SIZE = 50 * 1024 * 1024  # 50MB

MIN_PROPOSAL_LENGTH = 20
MIN_TITLE_LENGTH = 5
MIN_DESCRIPTION_LENGTH = 20
MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
