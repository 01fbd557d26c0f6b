"""
WebCPD — token-based copy/paste detector for PHP, Twig, JS and CSS
source trees.

Copyright (c) 2026 Den Rozhnovskiy
Licensed under the MIT License.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from xml.dom import minidom

from .contracts import PMD_REPORT_SCHEMA_VERSION
from .models import Clone, CloneReport

# Characters outside the XML 1.0 Char production.
_XML_INVALID_RE = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _format_occurrence(clone: Clone, index: int) -> str:
    o = clone.occurrences[index]
    location = f"{o.filepath}:{o.start_line}-{o.end_line}"
    if index == 0:
        return f"  - {location} ({clone.lines} lines, {clone.tokens} tokens)"
    return f"    {location}"


def to_text_report(report: CloneReport) -> str:
    if not report.clones:
        return ""

    lines = [
        f"Found {len(report.clones)} clones with {report.duplicated_lines} "
        f"duplicated lines in {report.files_with_clones} files ({report.group}):",
        "",
    ]
    for clone in report.clones:
        lines.extend(
            _format_occurrence(clone, i) for i in range(len(clone.occurrences))
        )
        lines.append("")

    percentage = (
        report.duplicated_lines / report.line_count * 100 if report.line_count else 0.0
    )
    average = sum(c.lines for c in report.clones) / len(report.clones)
    largest = max(c.lines for c in report.clones)
    lines.append(
        f"{percentage:.2f}% duplicated lines out of "
        f"{report.line_count} total lines of code."
    )
    lines.append(
        f"Average size of duplication is {average:.0f} lines, "
        f"largest clone has {largest} of lines"
    )
    return "\n".join(lines) + "\n"


def _fragment_node(doc: minidom.Document, text: str) -> minidom.Text:
    text = _XML_INVALID_RE.sub("", text)
    # a CDATA section cannot contain its own terminator
    if "]]>" in text:
        return doc.createTextNode(text)
    return doc.createCDATASection(text)


def to_pmd_xml(
    reports: Iterable[CloneReport],
    meta: Mapping[str, object] | None = None,
) -> str:
    """
    Render clone reports as one PMD-CPD document.

    Every language group contributes its ``<duplication>`` elements in report
    order. ``meta`` entries become attributes of the ``<pmd-cpd>`` root.
    """
    impl = minidom.getDOMImplementation()
    doc = impl.createDocument(None, "pmd-cpd", None)
    root = doc.documentElement
    root.setAttribute("version", PMD_REPORT_SCHEMA_VERSION)
    for key, value in (meta or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        root.setAttribute(key.replace("_", "-"), str(value))

    for report in reports:
        for clone in report.clones:
            duplication = doc.createElement("duplication")
            duplication.setAttribute("lines", str(clone.lines))
            duplication.setAttribute("tokens", str(clone.tokens))
            for o in clone.occurrences:
                file_el = doc.createElement("file")
                file_el.setAttribute("path", o.filepath)
                file_el.setAttribute("line", str(o.start_line))
                file_el.setAttribute("endline", str(o.end_line))
                duplication.appendChild(file_el)
            fragment = doc.createElement("codefragment")
            fragment.appendChild(_fragment_node(doc, clone.fragment))
            duplication.appendChild(fragment)
            root.appendChild(duplication)

    xml = doc.toprettyxml(indent="  ", encoding="UTF-8").decode("utf-8")
    doc.unlink()
    return xml
