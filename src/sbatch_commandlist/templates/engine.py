"""Jinja2 rendering of batch scripts.

Templates are looked up in the scheduler packages first (e.g.
``slurm/templates/array.sh.j2``), then in this package, which holds the
shared fragments they include.
"""

import shlex
from pathlib import Path
from typing import Any

import jinja2

_SEARCH_PATH = (
    Path(__file__).parent.parent / "schedulers",
    Path(__file__).parent,
)

_env: jinja2.Environment | None = None


def _get_env() -> jinja2.Environment:
    global _env
    if _env is None:
        _env = jinja2.Environment(
            loader=jinja2.FileSystemLoader([str(p) for p in _SEARCH_PATH]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            # Missing variables raise
            undefined=jinja2.StrictUndefined,
        )
        _env.filters["shquote"] = lambda value: shlex.quote(str(value))
    return _env


def render_template(name: str, **context: Any) -> str:
    """Render the script template *name* with *context*.

    Raises:
        jinja2.TemplateNotFound: If no template called *name* exists
        jinja2.UndefinedError: If the template uses a variable not in *context*
    """
    return _get_env().get_template(name).render(**context)
