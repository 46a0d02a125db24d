"""Parser for `/** ... */` documentation comments.

Supported tags:
- @param / @arg {type} name [description]
- @return / @returns / @ret {type} [description]
- @deprecated [note]

Text before the first tag is the description. Lines following a tag that do
not start a new tag continue that tag's description.
"""

from __future__ import annotations

import re

from ..core.types import DocParam, DocReturn, StructuredDoc

_TAG_RE = re.compile(r"^@(\w+)\s*(.*)$", re.DOTALL)
_TYPED_RE = re.compile(r"^\{([^}]*)\}\s*(.*)$", re.DOTALL)

_PARAM_TAGS = frozenset({"param", "arg", "argument"})
_RETURN_TAGS = frozenset({"return", "returns", "ret"})


def _strip_delimiters(block: str) -> list[str]:
    body = block.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]

    lines: list[str] = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:].strip()
        lines.append(line)
    return lines


def _split_blocks(lines: list[str]) -> tuple[list[str], list[str]]:
    """Split comment lines into description lines and joined tag blocks."""
    description: list[str] = []
    tags: list[str] = []
    for line in lines:
        if line.startswith("@"):
            tags.append(line)
        elif tags:
            if line:
                tags[-1] = f"{tags[-1]} {line}"
        else:
            description.append(line)
    return description, tags


def _parse_param(rest: str) -> DocParam | None:
    param_type = "any"
    typed = _TYPED_RE.match(rest)
    if typed:
        param_type = typed.group(1).strip() or "any"
        rest = typed.group(2)

    parts = rest.split(None, 1)
    if not parts:
        return None
    name = parts[0]
    # [name] and [name=default] mark optional parameters
    if name.startswith("[") and name.endswith("]"):
        name = name[1:-1].split("=", 1)[0]
    description = parts[1].strip() if len(parts) > 1 else ""
    if description.startswith("- "):
        description = description[2:]
    return DocParam(name=name, type=param_type, description=description)


def _parse_return(rest: str) -> DocReturn | None:
    typed = _TYPED_RE.match(rest)
    if typed:
        return DocReturn(type=typed.group(1).strip() or "any", description=typed.group(2).strip())
    parts = rest.split(None, 1)
    if not parts:
        return None
    return DocReturn(type=parts[0], description=parts[1].strip() if len(parts) > 1 else "")


def parse_doc_comment(block: str) -> StructuredDoc:
    """Parse a doc comment block into a StructuredDoc."""
    description_lines, tag_blocks = _split_blocks(_strip_delimiters(block))

    params: list[DocParam] = []
    returns: DocReturn | None = None
    deprecated = False

    for tag_block in tag_blocks:
        match = _TAG_RE.match(tag_block)
        if match is None:
            continue
        tag, rest = match.group(1).lower(), match.group(2).strip()
        if tag in _PARAM_TAGS:
            param = _parse_param(rest)
            if param is not None:
                params.append(param)
        elif tag in _RETURN_TAGS:
            returns = _parse_return(rest)
        elif tag == "deprecated":
            deprecated = True

    description = "\n".join(description_lines).strip() or None
    return StructuredDoc(
        description=description,
        params=tuple(params),
        returns=returns,
        deprecated=deprecated,
    )
