"""Static fallback copy used when generation ultimately fails."""

from typing import Dict, Optional

from content_generation.models.content import ContentType

PLACEHOLDER = "{this field}"

FALLBACK_CONTENT: Dict[ContentType, str] = {
    ContentType.HEADER: "Welcome to {this field}",
    ContentType.TAGLINE: "The smarter way to work with {this field}",
    ContentType.CTA: "Sign up for free",
    ContentType.DESCRIPTION: "Discover how {this field} can help you reach your goals faster.",
}

# Used when no context is available to fill the placeholder.
GENERIC_FALLBACK_CONTENT: Dict[ContentType, str] = {
    ContentType.HEADER: "Welcome",
    ContentType.TAGLINE: "The smarter way to work",
    ContentType.CTA: "Sign up for free",
    ContentType.DESCRIPTION: "Discover how we can help you reach your goals faster.",
}

DEFAULT_FALLBACK = "Content coming soon"


class FallbackResolver:
    """Deterministic lookup of fallback copy by content type and context."""

    def __init__(
        self,
        templates: Optional[Dict[ContentType, str]] = None,
        generic: Optional[Dict[ContentType, str]] = None,
    ):
        self.templates = dict(FALLBACK_CONTENT)
        self.generic = dict(GENERIC_FALLBACK_CONTENT)
        if templates:
            self.templates.update(templates)
        if generic:
            self.generic.update(generic)

    def resolve(self, content_type: ContentType | str, context: Optional[str] = None) -> str:
        """Return fallback copy. Never raises."""
        try:
            content_type = ContentType(content_type)
        except ValueError:
            return DEFAULT_FALLBACK

        template = self.templates.get(content_type, DEFAULT_FALLBACK)
        context = (context or "").strip()
        if PLACEHOLDER not in template:
            return template
        if context:
            return template.replace(PLACEHOLDER, context)
        return self.generic.get(content_type, template.replace(PLACEHOLDER, "").strip())


def get_fallback_content(content_type: ContentType | str, context: Optional[str] = None) -> str:
    return FallbackResolver().resolve(content_type, context)
