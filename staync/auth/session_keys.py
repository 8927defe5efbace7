"""Keys used in the cookie session."""

SESSION_USER_ID = "user_id"
SESSION_USER_NAME = "user_name"
SESSION_USER_EMAIL = "user_email"
SESSION_USER_IMAGE = "user_image"
SESSION_OAUTH_STATE = "oauth_state"
SESSION_OAUTH_PROVIDER = "oauth_provider"
SESSION_AUTH_NEXT = "auth_next"
