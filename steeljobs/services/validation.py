import re

MOBILE_PATTERN = re.compile(r"^[+]?[\d\s\-()]{7,20}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PINCODE_PATTERN = re.compile(r"^\d{6}$")


def is_valid_mobile(value: str) -> bool:
    return bool(value) and MOBILE_PATTERN.match(value.strip()) is not None


def is_valid_email(value: str) -> bool:
    return bool(value) and len(value) <= 255 and EMAIL_PATTERN.match(value.strip()) is not None


def is_valid_pincode(value: str) -> bool:
    return bool(value) and PINCODE_PATTERN.match(value.strip()) is not None
