"""
Nickname generation for address book records.

Nicknames are derived from the last word of a contact's display name. A
person with several email addresses gets one numbered nickname per address
(Doe01, Doe02, ...); a person with a single address gets the bare name.
"""

# Used when a display name has no words at all
UNKNOWN_NAME = "Unknown"

# Largest suffix accepted; anything above parses as 0
MAX_SUFFIX = 2**32 - 1


def split_string_and_number(value: str) -> tuple[str, int]:
    """
    Split a nickname into its text prefix and numeric suffix.

    Everything before the first ASCII digit is the text part; the rest is
    parsed as an unsigned 32-bit integer, defaulting to 0 when absent, not
    a plain number, or larger than MAX_SUFFIX.

    Examples:
        >>> split_string_and_number("Doe02")
        ('Doe', 2)
        >>> split_string_and_number("Doe")
        ('Doe', 0)
        >>> split_string_and_number("R2D2")
        ('R', 0)
    """
    for index, character in enumerate(value):
        if character in "0123456789":
            number_part = value[index:]
            if number_part.isascii() and number_part.isdigit():
                number = int(number_part)
                return value[:index], number if number <= MAX_SUFFIX else 0
            return value[:index], 0
    return value, 0


def last_name_token(display_name: str) -> str:
    """Return the last whitespace-separated word of a name, or "Unknown"."""
    words = display_name.split()
    return words[-1] if words else UNKNOWN_NAME


def generate_nickname(
    display_name: str, email_count: int, existing_nicknames: list[str]
) -> str:
    """
    Generate a nickname and record it in the pool of issued nicknames.

    When the pool already holds a nickname, its text prefix and number
    become the base and starting counter, so all addresses of one person
    share a prefix.

    Args:
        display_name: Full name of the contact
        email_count: Number of email addresses the person has
        existing_nicknames: Nicknames already issued for this person;
            the new nickname is appended

    Returns:
        The generated nickname
    """
    if existing_nicknames:
        base_nickname, counter = split_string_and_number(existing_nicknames[0])
    else:
        base_nickname, counter = last_name_token(display_name), 0

    if email_count > 1:
        nickname = f"{base_nickname}{counter + 1:02d}"
        while nickname in existing_nicknames:
            counter += 1
            nickname = f"{base_nickname}{counter + 1:02d}"
        existing_nicknames.append(nickname)
        return nickname

    # A single address keeps the bare base, even if numbered variants exist
    existing_nicknames.append(base_nickname)
    return base_nickname
