# mentorship_sync/constants.py
class ErrorMessages:
    NOT_AUTHENTICATED = "User not logged in"
    MENTOR_NOT_FOUND = "Mentor profile not found"
    MENTOR_PROFILE_NOT_FOUND = "Mentor profile does not exist!"
    REQUEST_NOT_FOUND = "Request does not exist"
    CAPACITY_EXCEEDED = "Mentee limit of {limit} reached!"
    REQUEST_NOT_PENDING = "Request is already {status}"
    EMPTY_MESSAGE = "Message must not be empty"
    STORE_UNAVAILABLE = "The request store is currently unavailable"
    UNAUTHORIZED_MENTOR = "Not authorized to act on this request"
    UNAUTHORIZED_PARTICIPANT = "Not authorized to view this request"
    DUPLICATE_PROFILE = "Profile already exists for this user"

class Collections:
    REQUESTS = "mentorship_requests"
    PROFILES = "profiles"

class BusinessRules:
    MIN_NAME_LENGTH = 1
    MAX_NAME_LENGTH = 100
    MIN_PASSWORD_LENGTH = 6
    MAX_USERNAME_LENGTH = 50
    MAX_MESSAGE_LENGTH = 2000
