"""Synthesis of the coverage registration and report harness.

Rendering is a pure function of the manifest and the entry module; the
rendered Go source is parsed into a ProgramUnit so it can be merged with the
entry point.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import jinja2

from binarycover.constants import (
    DEFAULT_COVER_MODE,
    MODULE_ALIAS_PREFIX,
    REGISTER_FUNC,
    REPORT_DIR_ENV,
    REPORT_FUNC,
    REPORT_SUFFIX_ENV,
)
from binarycover.errors import ParseError
from binarycover.syntax import ProgramUnit, parse_unit
from binarycover.types import CoverageManifest, CoverageVariable, Module

logger = logging.getLogger(__name__)

HARNESS_TEMPLATE = "harness.go.j2"


@dataclass(frozen=True)
class _HarnessImport:
    import_path: str
    variables: list[CoverageVariable]


def _go_quote(value: str) -> str:
    # A JSON string is also a valid Go interpreted string literal
    return json.dumps(value)


def _environment() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("binarycover", "templates"),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
        autoescape=False,
    )
    env.filters["go_quote"] = _go_quote
    return env


def _source_import_path(import_path: str, import_map: dict[str, str]) -> str:
    """Map a resolved import path back to the path the entry module imports it by."""
    for source, resolved in import_map.items():
        if resolved == import_path:
            return source
    return import_path


def render_harness(manifest: CoverageManifest, entry: Module, mode: str = DEFAULT_COVER_MODE) -> str:
    """Render the harness Go source for `manifest`."""
    import_map = dict(entry.import_map)
    # a module without instrumented files would be an unused import
    records = [
        _HarnessImport(
            import_path=_source_import_path(record.module, import_map),
            variables=list(record.variables.values()),
        )
        for record in manifest
        if record.variables
    ]
    try:
        template = _environment().get_template(HARNESS_TEMPLATE)
        return template.render(
            entry=entry,
            records=records,
            mode=mode,
            alias_prefix=MODULE_ALIAS_PREFIX,
            register_func=REGISTER_FUNC,
            report_func=REPORT_FUNC,
            report_dir_env=REPORT_DIR_ENV,
            report_suffix_env=REPORT_SUFFIX_ENV,
        )
    except jinja2.TemplateError as e:
        raise ParseError(f"Failed to render the harness template {HARNESS_TEMPLATE}: {e}") from e


def synthesize_harness(manifest: CoverageManifest, entry: Module, mode: str = DEFAULT_COVER_MODE) -> ProgramUnit:
    """Render the harness and parse it into a ProgramUnit.

    Raises ParseError when the rendered source is not valid Go.
    """
    source = render_harness(manifest, entry, mode)
    unit = parse_unit(source, f"<generated harness for {entry.import_path}>")
    logger.info(
        f"Synthesized harness for {entry.import_path}: {len(manifest)} module(s), "
        f"{sum(1 for _ in manifest.variables())} file(s)"
    )
    return unit
