import re
import unicodedata


def create_slug(text: str) -> str:
    """Build a url-safe slug: accents stripped, punctuation dropped, spaces to hyphens."""
    slug = unicodedata.normalize("NFD", text)
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = slug.strip().lower()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()
