"""
Subscriber Domain Values
========================

Parse-and-validate wrappers for untrusted form input. A SubscriberEmail or
SubscriberName can only be obtained through parse(), so anything past the
HTTP boundary is already known to be valid.
"""

import unicodedata
from dataclasses import dataclass

# Maximum display name length, in characters
NAME_MAX_LENGTH = 256

# Maximum email length accepted before parsing
EMAIL_MAX_LENGTH = 255

# Characters that could break out of a header or an HTML body
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')


class ValidationError(ValueError):
    """Raised when raw input cannot become a domain value"""


class MalformedEmail(ValidationError):
    pass


class EmptyName(ValidationError):
    pass


class NameTooLong(ValidationError):
    pass


class ForbiddenCharacter(ValidationError):
    pass


def _is_control_or_format(char):
    return unicodedata.category(char) in ('Cc', 'Cf')


@dataclass(frozen=True)
class SubscriberEmail:
    value: str

    @classmethod
    def parse(cls, raw):
        """Syntactic check only: one '@', a local part, a dotted domain"""
        if not isinstance(raw, str):
            raise MalformedEmail("Email address is required")

        candidate = raw.strip().lower()
        if not candidate or len(candidate) > EMAIL_MAX_LENGTH:
            raise MalformedEmail(f"{raw!r} is not a valid subscriber email")
        if any(ch.isspace() for ch in candidate):
            raise MalformedEmail(f"{raw!r} is not a valid subscriber email")
        if candidate.count('@') != 1:
            raise MalformedEmail(f"{raw!r} is not a valid subscriber email")

        local, domain = candidate.split('@')
        if not local or '.' not in domain:
            raise MalformedEmail(f"{raw!r} is not a valid subscriber email")

        return cls(candidate)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class SubscriberName:
    value: str

    @classmethod
    def parse(cls, raw):
        if not isinstance(raw, str) or not raw.strip():
            raise EmptyName("Name must not be empty")

        candidate = raw.strip()
        if len(candidate) > NAME_MAX_LENGTH:
            raise NameTooLong(f"Name must be at most {NAME_MAX_LENGTH} characters")

        for ch in candidate:
            if ch in FORBIDDEN_NAME_CHARACTERS or _is_control_or_format(ch):
                raise ForbiddenCharacter(f"Name contains a forbidden character: {ch!r}")

        return cls(candidate)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class NewSubscriber:
    email: SubscriberEmail
    name: SubscriberName

    @classmethod
    def parse(cls, email, name):
        """Validate a raw (email, name) pair; the name is checked first"""
        parsed_name = SubscriberName.parse(name)
        parsed_email = SubscriberEmail.parse(email)
        return cls(email=parsed_email, name=parsed_name)
