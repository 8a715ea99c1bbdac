"""Internal constants shared across the library."""

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_COGNITO_REGION = "us-east-1"
USER_AGENT = "pykappa"

#: Tokens closer than this to expiry are refreshed on read (5 minutes).
REFRESH_THRESHOLD_MS = 300_000
DEFAULT_ROLE = "CONSUMER"
AUTOSAVE_DEBOUNCE_SECONDS = 1.0

COGNITO_INITIATE_AUTH_TARGET = "AWSCognitoIdentityProviderService.InitiateAuth"
COGNITO_CONTENT_TYPE = "application/x-amz-json-1.1"

# ------------------------------------------------------------------
# Backend endpoints
# ------------------------------------------------------------------

USERS_UPSERT_ON_LOGIN = "/api/users/upsert-on-login"
USERS_ME = "/api/users/me"
MEMBERS_DRAFT = "/api/members/draft"
MEMBERS_REGISTER = "/api/members/register"
MEMBERS_COGNITO_SIGNUP = "/api/members/cognito/signup"
MEMBERS_COGNITO_VERIFY = "/api/members/cognito/verify"

# ------------------------------------------------------------------
# Registration wizard
# ------------------------------------------------------------------

FIRST_STEP = 1
PROFILE_FIRST_STEP = 2
LAST_STEP = 6
MIN_PASSWORD_LENGTH = 8

MAX_IMAGE_BYTES = 2 * 1024 * 1024
ALLOWED_IMAGE_TYPES: frozenset[str] = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})

DRAFT_CACHE_KEY = "memberRegistrationDraft"
