import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_LENGTH = 8


def check_registration(name: str, email: str, password: str) -> None:
    """Raise ValueError with the message shown to the admin when the form is invalid."""
    if not name or not email or not password:
        raise ValueError("All fields are required.")
    if not EMAIL_RE.match(email):
        raise ValueError("Please enter a valid email address.")
    if len(password) != PASSWORD_LENGTH:
        raise ValueError(f"Password must be exactly {PASSWORD_LENGTH} characters long.")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number.")
