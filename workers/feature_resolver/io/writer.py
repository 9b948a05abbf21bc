"""
Writer: serialize a resolved configuration.

Filesystem layout:
    <output_dir>/resolved_config.json
    <output_dir>/features.h
"""
import json
from pathlib import Path
from typing import List, Mapping

from feature_resolver import PACKAGE_NAME, RESOLVER_VERSION
from feature_resolver.core.resolved import ResolvedConfiguration
from feature_resolver.io.schema import ResolvedConfigReport
from feature_resolver.policy.flags import FLAG_CATALOG, FlagKind, FlagSpec

DEFAULT_MACRO_PREFIX = "USE_"
HEADER_GUARD = "FEATURES_H_INCLUDED"


def _macro(prefix: str, *parts: str) -> str:
    return prefix + "_".join(p.upper() for p in parts)


def render_header(
    config: ResolvedConfiguration,
    prefix: str = DEFAULT_MACRO_PREFIX,
    catalog: Mapping[str, FlagSpec] = FLAG_CATALOG,
) -> str:
    """Render *config* as C preprocessor defines, one block per flag."""
    lines: List[str] = [
        "/*",
        f" *  Generated by {PACKAGE_NAME} {RESOLVER_VERSION}; do not edit.",
        f" *  profile: {config.profile_id}",
        f" *  fingerprint: {config.fingerprint}",
        " */",
        f"#ifndef {HEADER_GUARD}",
        f"#define {HEADER_GUARD}",
        "",
    ]
    for name, value in config.flags.items():
        spec = catalog[name]
        if spec.kind == FlagKind.BOOL:
            directive = "#define" if value else "#undef "
            lines.append(f"{directive} {_macro(prefix, name)}")
        elif spec.kind == FlagKind.INT:
            lines.append(f"#define {_macro(prefix, name)} {value}")
        else:
            for choice in spec.choices:
                if choice == "none":
                    continue
                directive = "#define" if choice == value else "#undef "
                lines.append(f"{directive} {_macro(prefix, name, choice)}")
    lines += ["", f"#endif  /* {HEADER_GUARD} */", ""]
    return "\n".join(lines)


def write_outputs(
    config: ResolvedConfiguration,
    output_dir: Path,
    prefix: str = DEFAULT_MACRO_PREFIX,
) -> Path:
    """
    Write resolved_config.json and features.h into *output_dir*.

    Creates *output_dir* if it does not exist.
    Returns the output directory path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    report = ResolvedConfigReport.from_config(config)
    (output_dir / "resolved_config.json").write_text(
        json.dumps(
            report.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
    (output_dir / "features.h").write_text(render_header(config, prefix))

    return output_dir
