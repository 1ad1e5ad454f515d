"""
Validation and normalization of extracted page content.

The extractor (bookmarklet or headless scraper) posts a camelCase JSON
document. ``normalize`` validates it and freezes it into a
``NormalizedContent`` snapshot; nothing downstream mutates that snapshot.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from docscore.errors import ContentValidationError
from docscore.protocols import (
    Callout,
    CodeBlock,
    ContentMeta,
    Heading,
    Image,
    Link,
    ListBlock,
    NormalizedContent,
    PageStructure,
    PageText,
    Paragraph,
    Section,
    Table,
)

logger = structlog.get_logger(__name__)


def _pick(data: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """Return the first present key, accepting both camelCase and snake_case spellings."""
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def _word_count(text: str) -> int:
    return len(text.split())


def validate(raw: Any) -> List[str]:
    """Return a list of validation errors; an empty list means the content is usable."""
    if raw is None:
        return ["Content is null or undefined"]
    if not isinstance(raw, Mapping):
        return ["Content must be a JSON object"]

    errors: List[str] = []

    meta = raw.get("meta")
    if not isinstance(meta, Mapping) or not meta.get("url"):
        errors.append("Missing meta information or URL")

    if not isinstance(raw.get("structure"), Mapping):
        errors.append("Missing structure data")

    text = raw.get("text")
    if not isinstance(text, Mapping) or not isinstance(_pick(text, "fullText", "full_text"), str):
        errors.append("Missing or invalid text content")

    return errors


def normalize(raw: Any) -> NormalizedContent:
    """
    Validate raw extractor output and freeze it into a NormalizedContent.

    Raises:
        ContentValidationError: If the payload lacks a URL, structure, or text.
    """
    if isinstance(raw, NormalizedContent):
        return raw

    errors = validate(raw)
    if errors:
        logger.warning("Content validation failed", errors=errors)
        raise ContentValidationError(errors)

    meta = raw["meta"]
    structure = raw["structure"]
    text = raw["text"]

    full_text = _pick(text, "fullText", "full_text")
    word_count = _pick(text, "wordCount", "word_count")
    if not isinstance(word_count, int):
        word_count = _word_count(full_text)

    return NormalizedContent(
        meta=ContentMeta(
            url=str(meta["url"]),
            title=str(meta.get("title") or ""),
            extracted_at=_pick(meta, "extractedAt", "extracted_at"),
            domain=meta.get("domain"),
            last_updated=_pick(meta, "lastUpdated", "last_updated"),
            extraction_warnings=tuple(_pick(meta, "extractionWarnings", "extraction_warnings", default=[])),
        ),
        structure=_parse_structure(structure),
        text=PageText(full_text=full_text, word_count=word_count),
        sections=tuple(_parse_section(item) for item in raw.get("sections") or []),
    )


def _parse_structure(data: Mapping[str, Any]) -> PageStructure:
    return PageStructure(
        headings=tuple(_parse_heading(item, i) for i, item in enumerate(data.get("headings") or [])),
        paragraphs=_parse_paragraphs(data.get("paragraphs") or []),
        lists=_parse_lists(data.get("lists") or []),
        images=_parse_images(data.get("images") or []),
        tables=_parse_tables(data.get("tables") or []),
        code_blocks=_parse_code_blocks(_pick(data, "codeBlocks", "code_blocks", default=[])),
        links=tuple(_parse_link(item, i) for i, item in enumerate(data.get("links") or [])),
        callouts=tuple(
            Callout(type=str(item.get("type") or "note"), text=str(item.get("text") or ""), index=item.get("index", i))
            for i, item in enumerate(data.get("callouts") or [])
        ),
    )


def _parse_heading(item: Mapping[str, Any], position: int) -> Heading:
    level = item.get("level", "h2")
    if isinstance(level, int):
        level = f"h{level}"
    return Heading(level=str(level).lower(), text=str(item.get("text") or ""), index=item.get("index", position))


def _parse_paragraphs(items: Iterable[Mapping[str, Any]]) -> tuple:
    paragraphs = []
    for i, item in enumerate(items):
        text = str(item.get("text") or "")
        count = _pick(item, "wordCount", "word_count")
        paragraphs.append(
            Paragraph(
                text=text,
                word_count=count if isinstance(count, int) else _word_count(text),
                index=item.get("index", i),
            )
        )
    return tuple(paragraphs)


def _parse_lists(items: Iterable[Mapping[str, Any]]) -> tuple:
    lists = []
    for i, item in enumerate(items):
        entries = tuple(str(entry) for entry in item.get("items") or [])
        count = _pick(item, "itemCount", "item_count")
        lists.append(
            ListBlock(
                type=str(item.get("type") or "ul").lower(),
                items=entries,
                item_count=count if isinstance(count, int) else len(entries),
                index=item.get("index", i),
            )
        )
    return tuple(lists)


def _parse_images(items: Iterable[Mapping[str, Any]]) -> tuple:
    images = []
    for i, item in enumerate(items):
        alt = item.get("alt")
        has_alt = _pick(item, "hasAlt", "has_alt")
        if has_alt is None:
            has_alt = bool(alt and str(alt).strip())
        images.append(Image(src=str(item.get("src") or ""), alt=alt, has_alt=bool(has_alt), index=item.get("index", i)))
    return tuple(images)


def _parse_tables(items: Iterable[Mapping[str, Any]]) -> tuple:
    return tuple(
        Table(
            caption=item.get("caption"),
            headers=tuple(str(h) for h in item.get("headers") or []),
            rows=tuple(tuple(str(cell) for cell in row) for row in item.get("rows") or []),
            index=item.get("index", i),
        )
        for i, item in enumerate(items)
    )


def _parse_code_blocks(items: Iterable[Mapping[str, Any]]) -> tuple:
    return tuple(
        CodeBlock(
            content=str(item.get("content") or ""),
            type=str(item.get("type") or "block"),
            language=str(item.get("language") or "unknown"),
            index=item.get("index", i),
        )
        for i, item in enumerate(items)
    )


def _parse_link(item: Mapping[str, Any], position: int) -> Link:
    return Link(
        href=str(item.get("href") or ""),
        text=str(item.get("text") or ""),
        type=str(item.get("type") or "internal"),
        index=item.get("index", position),
        is_broken=bool(_pick(item, "isBroken", "is_broken", default=False)),
        reason=item.get("reason"),
    )


def _parse_section(item: Mapping[str, Any]) -> Section:
    level: Optional[Any] = item.get("level")
    if isinstance(level, str):
        digits = "".join(ch for ch in level if ch.isdigit())
        level = int(digits) if digits else None
    paragraphs = _parse_paragraphs(item.get("paragraphs") or [])
    word_count = _pick(item, "wordCount", "word_count")
    if not isinstance(word_count, int):
        word_count = sum(p.word_count for p in paragraphs)
    return Section(
        title=str(item.get("title") or ""),
        level=level,
        paragraphs=paragraphs,
        lists=_parse_lists(item.get("lists") or []),
        images=_parse_images(item.get("images") or []),
        tables=_parse_tables(item.get("tables") or []),
        code_blocks=_parse_code_blocks(_pick(item, "codeBlocks", "code_blocks", default=[])),
        word_count=word_count,
    )


def text_for_analysis(content: NormalizedContent) -> str:
    """
    Render the page as plain text for semantic analysis.

    The output keeps the heading outline, numbers paragraphs (``[P1]``) and
    lists so the model can cite locations. It is also the input to the
    content hash used for cache keys.
    """
    sections: List[str] = []

    if content.meta.title:
        sections.append(f"# {content.meta.title}")

    if content.structure.headings:
        outline = ""
        for heading in content.structure.headings:
            prefix = "#" * max(1, heading.level_number)
            outline += f"\n\n{prefix} {heading.text}"
        sections.append(outline)

    if content.structure.paragraphs:
        sections.append("\n## Content Paragraphs:")
        for i, paragraph in enumerate(content.structure.paragraphs):
            sections.append(f"[P{i + 1}] {paragraph.text}")

    if content.structure.lists:
        sections.append("\n## Lists:")
        for i, block in enumerate(content.structure.lists):
            sections.append(f"[List {i + 1} - {block.type}]")
            for j, entry in enumerate(block.items):
                marker = f"{j + 1}." if block.ordered else "-"
                sections.append(f"  {marker} {entry}")

    return "\n".join(sections).strip()


def content_to_dict(content: NormalizedContent) -> Dict[str, Any]:
    """Inverse of ``normalize`` for the fields the extractor supplies (camelCase)."""
    structure = content.structure
    return {
        "meta": {
            "url": content.meta.url,
            "title": content.meta.title,
            "extractedAt": content.meta.extracted_at,
            "domain": content.meta.domain,
            "lastUpdated": content.meta.last_updated,
            "extractionWarnings": list(content.meta.extraction_warnings),
        },
        "structure": {
            "headings": [{"level": h.level, "text": h.text, "index": h.index} for h in structure.headings],
            "paragraphs": [{"text": p.text, "wordCount": p.word_count, "index": p.index} for p in structure.paragraphs],
            "lists": [
                {"type": b.type, "items": list(b.items), "itemCount": b.item_count, "index": b.index}
                for b in structure.lists
            ],
            "images": [{"src": i.src, "alt": i.alt, "hasAlt": i.has_alt, "index": i.index} for i in structure.images],
            "tables": [
                {"caption": t.caption, "headers": list(t.headers), "rows": [list(r) for r in t.rows], "index": t.index}
                for t in structure.tables
            ],
            "codeBlocks": [
                {"content": c.content, "type": c.type, "language": c.language, "index": c.index}
                for c in structure.code_blocks
            ],
            "links": [
                {
                    "href": link.href,
                    "text": link.text,
                    "type": link.type,
                    "index": link.index,
                    "isBroken": link.is_broken,
                    "reason": link.reason,
                }
                for link in structure.links
            ],
            "callouts": [{"type": c.type, "text": c.text, "index": c.index} for c in structure.callouts],
        },
        "text": {"fullText": content.text.full_text, "wordCount": content.text.word_count},
    }
