"""Structured assembly of JXA scripts.

A script is an ordered list of statement fragments wrapped in one envelope:
parse the side-channel JSON from `argv[0]`, bind the Things application, run
the body, and always answer with a JSON string. Caller data never enters the
script text; it reaches the script only through `params`. The few static
values baked in at build time (flags, list ids) go through `js_literal`.
"""

from __future__ import annotations

import json
from string import Template
from typing import Any, List

from infrastructure.jxa.prelude import PRELUDE

THINGS_BUNDLE_ID = "com.culturedcode.ThingsMac"

_ENVELOPE_HEAD = """function run(argv) {
  try {
    const params = argv.length > 0 && argv[0] ? JSON.parse(argv[0]) : {};
    const warnings = [];
    const things = Application($bundle);
"""

_ENVELOPE_TAIL = """
  } catch (error) {
    return JSON.stringify({
      success: false,
      error: {
        type: error.name || 'UnknownError',
        message: error.message || 'An unknown error occurred',
        code: error.errorNumber || -1
      }
    });
  }
}
"""


def js_literal(value: Any) -> str:
    """Render a static value as a JavaScript literal.

    This is the only way a Python value may enter script text.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return json.dumps(value)
    raise TypeError(f"cannot embed {type(value).__name__} in a JXA script")


class ScriptBuilder:
    def __init__(self, *, include_prelude: bool = True) -> None:
        self.include_prelude = include_prelude
        self._fragments: List[str] = []

    def add(self, code: str, **bindings: Any) -> "ScriptBuilder":
        """Append a fragment; `$name` placeholders are filled via `js_literal`."""
        rendered = {key: js_literal(value) for key, value in bindings.items()}
        self._fragments.append(Template(code).substitute(rendered))
        return self

    def build(self) -> str:
        parts = [Template(_ENVELOPE_HEAD).substitute(bundle=js_literal(THINGS_BUNDLE_ID))]
        if self.include_prelude:
            parts.append(PRELUDE)
        parts.extend(self._fragments)
        parts.append(_ENVELOPE_TAIL)
        return "\n".join(parts)


__all__ = ["THINGS_BUNDLE_ID", "ScriptBuilder", "js_literal"]
