"""Build GitHub issue title and body from TargetProcess entity data."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from markdownify import markdownify

from .models import NormalizedIssue

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import MigratedAttachmentRecord, SourceEntity
    from .protocols import MarkdownConverter

# Descriptions starting with this comment are already Markdown
MARKDOWN_SENTINEL: Final[str] = "<!--markdown-->"


class MarkdownifyConverter:
    """HTML to Markdown conversion backed by the markdownify library."""

    def __init__(self, *, heading_style: str = "ATX", bullets: str = "-") -> None:
        self.heading_style: str = heading_style
        self.bullets: str = bullets

    def convert(self, html: str) -> str:
        return markdownify(html, heading_style=self.heading_style, bullets=self.bullets)


def entity_url(base_url: str, entity_id: int) -> str:
    """Link to the entity in the TargetProcess web UI, or "" without a base URL."""
    base = (base_url or "").strip()
    if not base:
        return ""
    return f"{base.rstrip('/')}/entity/{entity_id}"


def build_tasks_section(tasks: Sequence[SourceEntity]) -> str:
    lines = [f"- [ ] {task.name.strip()}" for task in tasks if task.name and task.name.strip()]
    if not lines:
        return ""
    return "### Tasks\n\n" + "\n".join(lines)


def build_attachments_section(attachments: Sequence[MigratedAttachmentRecord]) -> str:
    lines = [
        f"- [{record.original_name}]({record.destination_url})"
        for record in attachments
        if record.original_name and record.destination_url
    ]
    if not lines:
        return ""
    return "### Attachments\n\n" + "\n".join(lines)


class EntityNormalizer:
    """Turns a TargetProcess entity into a GitHub issue title and body.

    The body is made of these sections, in order, each left out when empty:

    1. the description converted to Markdown,
    2. a ``### Tasks`` checklist,
    3. an ``### Attachments`` list of links,
    4. an import note linking back to TargetProcess,
    5. the provenance marker, always present and always the last line.
    """

    def __init__(self, converter: MarkdownConverter, base_url: str = "") -> None:
        self._converter: MarkdownConverter = converter
        self._base_url: str = base_url

    def description_markdown(self, html: str | None) -> str:
        if not html or not html.strip():
            return ""
        stripped = html.lstrip()
        if stripped.startswith(MARKDOWN_SENTINEL):
            return stripped[len(MARKDOWN_SENTINEL) :]
        return self._converter.convert(html).strip()

    def import_note(self, entity: SourceEntity) -> str:
        return f"_Imported from TargetProcess: [#{entity.id}]({entity_url(self._base_url, entity.id)})_"

    def normalize(
        self,
        entity: SourceEntity,
        tasks: Sequence[SourceEntity] = (),
        attachments: Sequence[MigratedAttachmentRecord] = (),
    ) -> NormalizedIssue:
        sections = [
            self.description_markdown(entity.description_html),
            build_tasks_section(tasks),
            build_attachments_section(attachments),
            self.import_note(entity),
            entity.marker,
        ]
        body = "\n\n".join(section for section in sections if section.strip()) + "\n"
        title = entity.name.strip() or f"{entity.type.value} #{entity.id}"
        return NormalizedIssue(title=title, body=body)
