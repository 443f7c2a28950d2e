#!/usr/bin/env python3
"""
Markdown to HTML rendering with a heading index captured per call.

Headings are collected into the markdown-it ``env`` of the current render,
so concurrent or repeated conversions never see each other's headings.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import re
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.dollarmath import dollarmath_plugin

from .errors import MarkdownRenderFailed
from .images import ImageEmbedder
from .logger import ConsoleLogger
from .models import HeadingRecord, RenderedMarkdown

_NON_WORD = re.compile(r'\W+')

_CODE_ESCAPES = str.maketrans({
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#39;',
})

PAGE_BREAK_DIV = '<div class="page-break"></div>'


def make_anchor_id(raw_text: str) -> str:
    """Lower-case the heading text and collapse every run of non-word characters to '-'.

    Duplicate headings produce duplicate ids; only the first is locatable in the DOM.
    """
    return _NON_WORD.sub('-', raw_text.lower())


def escape_code(text: str) -> str:
    return text.translate(_CODE_ESCAPES)


def process_page_breaks(content: str, logger: Optional[ConsoleLogger] = None) -> str:
    """Process page break markers in markdown content."""
    # <!-- page-break -->
    content = re.sub(r'<!--\s*page-break\s*-->', PAGE_BREAK_DIV, content, flags=re.IGNORECASE)

    # ```page-break
    # ```
    content = re.sub(r'```page-break[ \t]*\n```', PAGE_BREAK_DIV, content, flags=re.IGNORECASE)

    # <page-break>
    content = re.sub(r'<page-break\s*/?>', PAGE_BREAK_DIV, content, flags=re.IGNORECASE)

    page_break_count = content.count(PAGE_BREAK_DIV)
    if page_break_count > 0 and logger:
        logger.log_debug(f"Processed {page_break_count} page break(s)")

    return content


def _plain_text(inline_token) -> str:
    parts = []
    for child in inline_token.children or []:
        if child.type in ('softbreak', 'hardbreak'):
            parts.append(' ')
        elif child.type in ('text', 'code_inline', 'math_inline', 'math_inline_double'):
            parts.append(child.content)
    return ''.join(parts).strip() or inline_token.content.strip()


def _render_heading_open(self, tokens, idx, options, env):
    token = tokens[idx]
    inline = tokens[idx + 1]
    level = int(token.tag[1])
    raw_text = inline.content

    headings = env.setdefault('headings', [])
    anchor_id = make_anchor_id(raw_text)
    headings.append(HeadingRecord(
        level=level,
        text=_plain_text(inline),
        anchor_id=anchor_id,
        sequence_index=len(headings),
    ))

    token.attrSet('id', anchor_id)
    token.attrSet('class', f'section-heading level-{level}')
    return self.renderToken(tokens, idx, options, env)


def _render_fence(self, tokens, idx, options, env):
    token = tokens[idx]
    info = token.info.strip().split()
    lang = (info[0] if info else 'plaintext').lower()
    return f'<pre><code class="language-{escape_code(lang)}">{escape_code(token.content)}</code></pre>\n'


def _render_image(self, tokens, idx, options, env):
    embedder = env.get('image_embedder')
    if embedder is not None:
        token = tokens[idx]
        token.attrSet('src', embedder.embed(token.attrGet('src') or ''))
    return self.image(tokens, idx, options, env)


def _render_math_inline(self, tokens, idx, options, env):
    return f'<span class="math inline">\\({escape_code(tokens[idx].content)}\\)</span>'


def _render_math_block(self, tokens, idx, options, env):
    return f'<div class="math block">\\[{escape_code(tokens[idx].content)}\\]</div>\n'


@lru_cache(maxsize=1)
def _build_parser() -> MarkdownIt:
    # Rules only read and write the per-call env, so one parser is safe to share.
    md = MarkdownIt("commonmark", {"html": True}).enable(["table", "strikethrough"])
    md.use(dollarmath_plugin, allow_space=False, allow_digits=False, double_inline=True)

    md.add_render_rule('heading_open', _render_heading_open)
    md.add_render_rule('fence', _render_fence)
    md.add_render_rule('image', _render_image)
    md.add_render_rule('math_inline', _render_math_inline)
    md.add_render_rule('math_inline_double', _render_math_block)
    md.add_render_rule('math_block', _render_math_block)
    md.add_render_rule('math_block_label', _render_math_block)
    return md


def render_markdown(source: str, base_dir: Optional[Path] = None, max_image_width_px: Optional[int] = None,
                    logger: Optional[ConsoleLogger] = None) -> RenderedMarkdown:
    """Render Markdown to an HTML fragment and return it with the headings found, in order.

    Args:
        source: Markdown text
        base_dir: Directory relative image paths resolve against; images are not inlined when None
        max_image_width_px: Inlined images wider than this are downscaled
        logger: Console logger for debug output
    """
    logger = logger or ConsoleLogger()
    env = {'headings': []}
    if base_dir is not None:
        env['image_embedder'] = ImageEmbedder(base_dir, max_image_width_px, logger)

    try:
        html = _build_parser().render(process_page_breaks(source, logger), env)
    except Exception as e:
        raise MarkdownRenderFailed(f"Markdown rendering failed: {e}") from e

    headings: List[HeadingRecord] = env['headings']
    logger.log_debug(f"Rendered markdown: {len(html)} chars of HTML, {len(headings)} heading(s)")
    return RenderedMarkdown(html=html, headings=headings)


def extract_title(headings: List[HeadingRecord], fallback_name: str = "") -> str:
    """Pick the document title.

    Preference order:
    1) First level-1 heading
    2) Humanized fallback name (usually the file stem)
    """
    for heading in headings:
        if heading.level == 1 and heading.text:
            return heading.text

    stem = fallback_name.replace('_', ' ').replace('-', ' ').strip()
    return stem.title() if stem else (fallback_name or "Document")
