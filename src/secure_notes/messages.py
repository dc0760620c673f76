"""User-facing response messages."""

REGISTER_SUCCESS = "User registered successfully"
LOGIN_SUCCESS = "Login successful"
INVALID_CREDENTIAL = "Invalid email or password"
EMAIL_ALREADY_EXISTS = "Email already exists"

TOKEN_REQUIRED = "Authorization token is required"
INVALID_TOKEN = "Invalid or malformed token"
TOKEN_EXPIRED = "Token has expired"

NOTE_CREATED = "Note created successfully"
NOTE_DELETED = "Note deleted successfully"
NOTE_NOT_FOUND = "Note not found"
NOTES_FETCHED = "Notes fetched successfully"
UNAUTHORIZED_NOTE_ACCESS = "You are not authorized to access this note"

VALIDATION_ERROR = "Validation error"
TITLE_REQUIRED = "Title is required"
CONTENT_REQUIRED = "Content is required"
PASSWORD_REQUIRED = "Password is required"
INVALID_PASSWORD = "Password must be at least 6 characters"

SERVER_ERROR = "Internal server error"
NOT_FOUND = "Resource not found"
HEALTHY = "Secure Notes API is running"
