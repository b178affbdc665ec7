"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be fed straight into deep_merge.
The merge functions create copies, so the module-level value is never
mutated.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "logging": {
        "level": "warning",
        "format": "text",
        "file": "",
    },
    "render": {
        "conditionals": True,
        "loops": True,
        "inheritance": True,
        "escape_html": False,
        "preserve_whitespace": True,
    },
}
