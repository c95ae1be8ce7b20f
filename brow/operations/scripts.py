"""Parameterized page scripts.

Each template is a JS function expression. Arguments are never spliced
into its body: ``call`` appends them as JSON literals, so user values
cannot change the shape of the script.
"""
import json
from pathlib import Path
from typing import Any, Optional

_PICKER_PATH = Path(__file__).parent / "picker.js"
_PICKER_JS: Optional[str] = None

SET_COOKIE = "(cookie) => { document.cookie = cookie; }"

STORAGE_GET_ALL = """(area) => {
    const storage = window[area];
    const items = {};
    for (let i = 0; i < storage.length; i++) {
        const key = storage.key(i);
        items[key] = storage.getItem(key);
    }
    return items;
}"""
STORAGE_GET_ITEM = "(area, key) => window[area].getItem(key)"
STORAGE_SET_ITEM = "(area, key, value) => { window[area].setItem(key, value); }"
STORAGE_REMOVE_ITEM = "(area, key) => { window[area].removeItem(key); }"
STORAGE_CLEAR = "(area) => { window[area].clear(); }"

PICKED_SELECTOR = "() => window.__browPickedSelector ?? null"


def encode(value: Any) -> str:
    """Encode one argument as a JS literal."""
    return json.dumps(value)


def call(function_source: str, *args: Any) -> str:
    """Build an expression invoking ``function_source`` with ``args``."""
    encoded = ", ".join(encode(arg) for arg in args)
    return f"({function_source})({encoded})"


def picker_script() -> str:
    global _PICKER_JS
    if _PICKER_JS is None:
        _PICKER_JS = _PICKER_PATH.read_text(encoding="utf-8")
    return _PICKER_JS
