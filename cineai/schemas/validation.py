"""Input validation helpers with XSS protection"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
import re
import bleach

# Free-text inputs are echoed back (original_prompt, history) so no markup survives
ALLOWED_TAGS: list = []

DANGEROUS_PATTERNS = [
    r'<script[^>]*>',
    r'javascript:',
    r'\bon\w+\s*=',
    r'<iframe',
]


class SafeStringMixin:
    """Mixin for XSS-safe string validation"""

    @staticmethod
    def sanitize_html(value: str) -> str:
        """Remove dangerous HTML/JavaScript"""
        if not value:
            return value
        return bleach.clean(value, tags=ALLOWED_TAGS, strip=True)

    @staticmethod
    def validate_no_script(value: str) -> str:
        """Block common XSS patterns"""
        if not value:
            return value

        for pattern in DANGEROUS_PATTERNS:
            if re.search(pattern, value, re.IGNORECASE):
                raise ValueError("Invalid characters detected")

        return value


class TitleSearchSchema(BaseModel, SafeStringMixin):
    """Validated title search"""
    title: str = Field(..., min_length=1, max_length=200)
    year: Optional[int] = Field(None, ge=1888, le=2100)
    page: int = Field(1, ge=1, le=100)

    @field_validator('title')
    @classmethod
    def clean_title(cls, v):
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v).strip()


class GenreSchema(BaseModel, SafeStringMixin):
    """Validated genre filter"""
    genre: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z\- ]+$")
