#!/usr/bin/env python3
"""
Complete HTML document around the rendered Markdown body.

All layout-critical CSS is inlined so it applies before first paint. The
trailing script raises ``window.__renderComplete`` once math typesetting and
syntax highlighting have both settled.

MIT License - Copyright (c) 2025 Markdown to PDF Converter
"""

import html

from .config import PageGeometry, StyleProfile

READY_FLAG = "__renderComplete"
READY_EXPRESSION = f"window.{READY_FLAG} === true"

# Delay after highlighting and math resolve, letting layout reflow settle
SETTLE_DELAY_MS = 100

_CDN_STYLES = [
    "https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/themes/prism.min.css",
    "https://cdnjs.cloudflare.com/ajax/libs/KaTeX/0.16.9/katex.min.css",
]

_CDN_SCRIPTS = [
    "https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/components/prism-core.min.js",
    "https://cdnjs.cloudflare.com/ajax/libs/prism/1.29.0/plugins/autoloader/prism-autoloader.min.js",
    "https://cdnjs.cloudflare.com/ajax/libs/KaTeX/0.16.9/katex.min.js",
    "https://cdnjs.cloudflare.com/ajax/libs/KaTeX/0.16.9/contrib/auto-render.min.js",
]

_NUMBERING_CSS = """
        body { counter-reset: h1counter; }
        h1 { counter-reset: h2counter; }
        h1::before {
            counter-increment: h1counter;
            content: counter(h1counter) ". ";
            color: #555;
        }
        h2 { counter-reset: h3counter; }
        h2::before {
            counter-increment: h2counter;
            content: counter(h1counter) "." counter(h2counter) " ";
            color: #555;
        }
        h3::before {
            counter-increment: h3counter;
            content: counter(h1counter) "." counter(h2counter) "." counter(h3counter) " ";
            color: #555;
        }
"""

_READY_SCRIPT = """
    <script>
        window.%(flag)s = false;

        document.addEventListener('DOMContentLoaded', function () {
            var mathDone = new Promise(function (resolve) {
                try {
                    if (window.renderMathInElement) {
                        renderMathInElement(document.body, {
                            delimiters: [
                                {left: '$$', right: '$$', display: true},
                                {left: '\\\\[', right: '\\\\]', display: true},
                                {left: '\\\\(', right: '\\\\)', display: false},
                                {left: '$', right: '$', display: false}
                            ],
                            throwOnError: false
                        });
                    }
                } catch (e) { console.error(e); }
                resolve();
            });

            // The autoloader fetches grammars asynchronously; load them all before highlighting
            var highlightDone = new Promise(function (resolve) {
                var settled = false;
                function highlightAndResolve() {
                    if (settled) return;
                    settled = true;
                    try {
                        Prism.highlightAll();
                    } catch (e) { console.error(e); }
                    resolve();
                }

                if (!window.Prism) {
                    resolve();
                    return;
                }
                var missing = [];
                document.querySelectorAll('code[class*="language-"]').forEach(function (el) {
                    var match = el.className.match(/language-([\\w-]+)/);
                    var lang = match && match[1];
                    if (lang && !Prism.languages[lang] && missing.indexOf(lang) === -1) {
                        missing.push(lang);
                    }
                });
                var autoloader = Prism.plugins && Prism.plugins.autoloader;
                if (!missing.length || !autoloader) {
                    highlightAndResolve();
                    return;
                }
                autoloader.loadLanguages(missing, highlightAndResolve, highlightAndResolve);
            });

            var fontsDone = document.fonts ? document.fonts.ready : Promise.resolve();

            Promise.all([mathDone, highlightDone, fontsDone]).then(function () {
                setTimeout(function () {
                    window.%(flag)s = true;
                    document.body.classList.add('render-complete');
                }, %(settle)d);
            });
        });
    </script>
"""


def _stylesheet(style: StyleProfile, geometry: PageGeometry) -> str:
    scale = style.font_scale
    margins = geometry.margins_cm()
    numbering = _NUMBERING_CSS if style.numbered_headings else ""

    return f"""
        @page {{
            size: {geometry.page_format} portrait;
            margin: {margins['top']} {margins['right']} {margins['bottom']} {margins['left']};
        }}

        * {{
            box-sizing: border-box;
        }}

        html, body {{
            margin: 0;
            padding: 0;
        }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            font-size: {style.base_font_size};
            line-height: 1.6;
            color: #24292f;
            width: 100%;
            text-align: left;
        }}
{numbering}
        h1, h2, h3, h4, h5, h6 {{
            margin-top: 1.5em;
            margin-bottom: 0.5em;
            font-weight: 600;
            line-height: 1.25;
            page-break-after: avoid;
            break-after: avoid;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        h1 {{ font-size: {2.0 * scale:.2f}em; border-bottom: 1px solid #d0d7de; padding-bottom: 0.3em; }}
        h2 {{ font-size: {1.5 * scale:.2f}em; }}
        h3 {{ font-size: {1.25 * scale:.2f}em; }}
        h4 {{ font-size: {1.0 * scale:.2f}em; }}
        h5 {{ font-size: {0.9 * scale:.2f}em; }}
        h6 {{ font-size: {0.85 * scale:.2f}em; }}

        p {{
            margin: 0.5em 0;
            orphans: 3;
            widows: 3;
        }}

        pre {{
            background-color: #f6f8fa;
            padding: 12px;
            border-radius: 6px;
            border: 1px solid #d0d7de;
            font-family: Consolas, 'Courier New', monospace;
            font-size: {0.85 * scale:.2f}em;
            white-space: pre-wrap;
            word-break: break-all;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        code {{
            font-family: Consolas, 'Courier New', monospace;
            background-color: rgba(175, 184, 193, 0.2);
            padding: 0.2em 0.4em;
            border-radius: 4px;
            font-size: 85%;
        }}

        pre code {{
            background-color: transparent;
            padding: 0;
            font-size: 100%;
        }}

        ul, ol {{
            padding-left: 2em;
            margin: 1em 0;
            page-break-inside: avoid;
            break-inside: avoid;
            page-break-before: avoid;
            break-before: avoid;
        }}

        li {{
            margin-bottom: 0.25em;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        table {{
            border-collapse: collapse;
            width: 100%;
            max-width: 100%;
            margin: 1em 0;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        th, td {{
            border: 1px solid #d0d7de;
            padding: 8px;
            text-align: left;
        }}

        th {{ background-color: #f6f8fa; font-weight: 600; }}
        tr:nth-child(even) {{ background-color: #fafafa; }}

        blockquote {{
            border-left: 4px solid #d0d7de;
            padding: 0 1em;
            color: #57606a;
            margin: 1em 0;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        img {{
            max-width: 100%;
            height: auto;
            display: block;
            margin: 1em auto;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        .math.block, .katex-display {{
            overflow-x: auto;
            overflow-y: hidden;
            margin: 1em 0;
            padding: 0.5em 0;
            page-break-inside: avoid;
            break-inside: avoid;
        }}

        a {{
            color: #0969da;
            text-decoration: none;
        }}

        .page-break {{
            page-break-before: always;
            break-before: page;
        }}
"""


def build_document(body_html: str, title: str, style: StyleProfile, geometry: PageGeometry) -> str:
    """Wrap an HTML fragment into a complete, self-styled document."""
    links = "\n".join(f'    <link rel="stylesheet" href="{href}">' for href in _CDN_STYLES)
    scripts = "\n".join(f'    <script src="{src}"></script>' for src in _CDN_SCRIPTS)
    ready = _READY_SCRIPT % {"flag": READY_FLAG, "settle": SETTLE_DELAY_MS}

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(title)}</title>
    <style>{_stylesheet(style, geometry)}    </style>
{links}
</head>
<body>
    <article class="markdown-body">
{body_html}
    </article>
{scripts}
{ready}
</body>
</html>
"""
