"""
JSONP bundle serialisation.

A bundle is written as a single call of the client's loader:

    require.define({"/lib/a.js": {"/lib/a.js": function (require, exports, module) {...
    }}["/lib/a.js"],
    "/lib/missing.js": null,
    "lib": "/lib/a.js",
    });

Every requested member gets an entry: a module wrapper when the body was
fetched, `null` when the backend could not supply it, or the target path of
an alias.
"""

from typing import Mapping, Optional, Union
import re

from shared.errors import InvalidCallbackError
from service_bundler.app.associators import Alias

KEY_EXCEPTIONS = "./-_"

# Expressions like `require.define` or `requireForKey("key").define`, and
# nothing that could be read as markup.
CALLBACK_PATTERN = re.compile(r"""^[a-zA-Z0-9$:._'"\\()\[\]{}]+$""")

ALPHANUMERIC_PATTERN = re.compile(r"[^0-9A-Za-z]")

BundleEntry = Union[str, Alias, None]


def _escape_character(character: str) -> str:
    encoded = character.encode("utf-16-be")
    return "".join(
        "\\u%04x" % int.from_bytes(encoded[index:index + 2], "big")
        for index in range(0, len(encoded), 2)
    )


def escape_non_alphanumerics(text: str, exceptions: str = "") -> str:
    """Escape everything outside `[0-9A-Za-z]` and `exceptions` as `\\uXXXX`."""
    return ALPHANUMERIC_PATTERN.sub(
        lambda match: match.group(0) if match.group(0) in exceptions else _escape_character(match.group(0)),
        text,
    )


def validate_callback(callback: Optional[str]) -> str:
    if not callback:
        raise InvalidCallbackError("The parameter `callback` must be non-empty.")
    if not CALLBACK_PATTERN.fullmatch(callback):
        raise InvalidCallbackError(
            f"The parameter `callback` must match {CALLBACK_PATTERN.pattern}.",
            details={"callback": callback},
        )
    return callback


def module_wrapper(key: str, body: str) -> str:
    # A regular function so the loader can bind `this` to `module.exports`;
    # the property key names it in stack traces whatever the path looks like.
    return f'{{"{key}": function (require, exports, module) {{{body}\n}}}}["{key}"]'


def package_bundle(callback: str, bundle: Mapping[str, BundleEntry]) -> str:
    """Serialise an ordered member -> entry mapping into a JSONP payload."""
    content = [f"{callback}({{"]
    for path, entry in bundle.items():
        key = escape_non_alphanumerics(path, KEY_EXCEPTIONS)
        if entry is None:
            value = "null"
        elif isinstance(entry, Alias):
            value = f'"{escape_non_alphanumerics(entry.target, KEY_EXCEPTIONS)}"'
        else:
            value = module_wrapper(key, entry)
        content.append(f'"{key}": {value},\n')
    content.append("});\n")
    return "".join(content)
