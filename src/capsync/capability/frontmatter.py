"""Frontmatter parsing for capability markdown files (SKILL.md, commands, agents)."""

from dataclasses import dataclass

import frontmatter
import yaml


@dataclass(frozen=True)
class FrontmatterParseResult:
    """Result of parsing frontmatter from markdown content.

    Attributes:
        metadata: Parsed frontmatter dict; empty when the file has none.
        body: Content after the frontmatter (always present).
        error: Error message if the frontmatter was malformed, None otherwise.
    """

    metadata: dict[str, object]
    body: str
    error: str | None


def parse_markdown_frontmatter(content: str) -> FrontmatterParseResult:
    """Parse YAML frontmatter from markdown content.

    Content without frontmatter is valid and yields empty metadata. Invalid
    YAML or a non-mapping block yields empty metadata, the raw content as
    body, and an error message.
    """
    try:
        post = frontmatter.loads(content)
    except yaml.YAMLError as e:
        return FrontmatterParseResult(metadata={}, body=content, error=f"Invalid YAML: {e}")

    if not isinstance(post.metadata, dict):
        return FrontmatterParseResult(
            metadata={},
            body=content,
            error="Frontmatter is not a valid YAML mapping",
        )

    return FrontmatterParseResult(metadata=dict(post.metadata), body=post.content, error=None)


def frontmatter_string(result: FrontmatterParseResult, key: str) -> str | None:
    """Read a non-empty string field from parsed frontmatter."""
    value = result.metadata.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
