import secrets

from telecare.core import config


def generate_meeting_link(base_url: str | None = None, prefix: str | None = None) -> str:
    # 10 random bytes, 80 bits of entropy.
    token = secrets.token_hex(10)
    base_url = (base_url or config.MEETING_BASE_URL).rstrip('/')
    prefix = prefix or config.MEETING_ROOM_PREFIX
    return f'{base_url}/{prefix}-{token}'
