"""
Step fragment generators — one builder per step type.

Each builder takes the typed config of a step and returns the lines of
a self-contained shell block.  ``build_fragment()`` wraps the result in a
``Fragment`` that also carries the external commands the block needs,
which the script generator folds into the preflight check.

Unknown step types still produce a fragment: one that reports the type
and exits non-zero, so nothing is silently skipped on the target.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from installforge.core.models.recipe import Step
from installforge.core.models.steps import (
    AppendLinesConfig,
    AutoServiceConfig,
    ChmodConfig,
    ChownConfig,
    CopyConfig,
    DeleteLinesConfig,
    ExtractConfig,
    MkdirConfig,
    ReplaceConfig,
    RpmInstallConfig,
    RunCmdConfig,
    ServiceConfig,
    parse_step_config,
)
from installforge.core.services.generators.shell import (
    dq,
    escape_sed_delimiter,
    escape_sed_literal_pattern,
    escape_sed_replacement,
    heredoc_marker,
    sed_delimiter,
    sq,
)
from installforge.core.services.preflight import commands_for

Builder = Callable[[Any], list[str]]

_BUILDERS: dict[str, Builder] = {}


@dataclass(frozen=True)
class Fragment:
    """Generated shell block for one step."""

    step_type: str
    lines: list[str] = field(default_factory=list)
    requires: frozenset[str] = frozenset()

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def fragment(*step_types: str) -> Callable[[Builder], Builder]:
    """Register a builder for one or more step types."""

    def register(fn: Builder) -> Builder:
        for step_type in step_types:
            _BUILDERS[step_type] = fn
        return fn

    return register


def supported_step_types() -> list[str]:
    """Step types the generator knows how to compile."""
    return sorted(_BUILDERS)


def build_fragment(step: Step) -> Fragment:
    """Compile one step into its shell block."""
    builder = _BUILDERS.get(step.type)
    config = parse_step_config(step.type, step.config)
    if builder is None or config is None:
        return Fragment(step_type=step.type, lines=_unknown_lines(step.type))
    return Fragment(
        step_type=step.type,
        lines=builder(config),
        requires=commands_for(step.type),
    )


# ── Helpers ─────────────────────────────────────────────────────


def _indent(lines: list[str], prefix: str = "  ") -> list[str]:
    return [prefix + line if line else line for line in lines]


def _backup_lines(enabled: bool, *, only_if_exists: bool = False) -> list[str]:
    if not enabled:
        return []
    cmd = 'cp -a "$target" "$target.bak.$(date +%s)"'
    if only_if_exists:
        return [f'if [ -e "$target" ]; then {cmd}; fi']
    return [cmd]


def _atomic_replace_lines(filter_cmd: str) -> list[str]:
    """Run ``filter_cmd`` into a temp sibling, then move it over the target."""
    return [
        'tmp="$target.tmp.$$"',
        f'{filter_cmd} > "$tmp" || {{ rm -f "$tmp"; exit 1; }}',
        'chmod --reference="$target" "$tmp" 2>/dev/null || true',
        'chown --reference="$target" "$tmp" 2>/dev/null || true',
        'mv -f "$tmp" "$target"',
    ]


def _unknown_lines(step_type: str) -> list[str]:
    return [
        f"echo {sq(f'Unknown step type {step_type}')} >&2",
        "exit 1",
    ]


def _unit_name(name: str) -> str:
    return name if name.endswith(".service") else f"{name}.service"


def _sysv_lines(src: str, name: str, start: bool) -> list[str]:
    init_script = dq(f"/etc/init.d/{name}")
    lines = [
        f"cp {dq(src)} {init_script}",
        f"chmod +x {init_script}",
        "if command -v chkconfig >/dev/null 2>&1; then",
        f"  chkconfig --add {dq(name)}",
        f"  chkconfig {dq(name)} on",
        "else",
        '  echo "chkconfig not found; ensure service enabled manually" >&2',
        "fi",
    ]
    if start:
        lines.append(f"service {dq(name)} start")
    return lines


def _systemd_lines(src: str, name: str, start: bool) -> list[str]:
    lines = [
        f"cp {dq(src)} {dq('/etc/systemd/system/' + _unit_name(name))}",
        "systemctl daemon-reload",
    ]
    if start:
        lines.append(f"systemctl enable --now {dq(name)}")
    return lines


# ── Filesystem ──────────────────────────────────────────────────


@fragment("mkdir")
def mkdir_fragment(cfg: MkdirConfig) -> list[str]:
    return [f"mkdir -p {dq(cfg.path)}"]


@fragment("copy")
def copy_fragment(cfg: CopyConfig) -> list[str]:
    src, dest = dq(cfg.src), dq(cfg.dest)
    if cfg.overwrite:
        lines = [f"cp -f {src} {dest}"]
    else:
        lines = [
            f"if [ -e {dest} ] && [ ! -d {dest} ]; then",
            f"  echo {sq(f'skip copy: {cfg.dest} exists')}",
            "else",
            f"  cp -n {src} {dest}",
            "fi",
        ]
    if cfg.mode:
        lines.append(f"chmod {dq(cfg.mode)} {dest}")
    return lines


@fragment("chmod")
def chmod_fragment(cfg: ChmodConfig) -> list[str]:
    return [f"chmod {dq(cfg.mode)} {dq(cfg.path)}"]


@fragment("chown")
def chown_fragment(cfg: ChownConfig) -> list[str]:
    owner = f"{cfg.owner}:{cfg.group}" if cfg.group else cfg.owner
    return [f"chown {dq(owner)} {dq(cfg.path)}"]


# ── Archives ────────────────────────────────────────────────────


def _extract_lines(step_type: str, cfg: ExtractConfig, extract_cmd: str) -> list[str]:
    body = [f"mkdir -p {dq(cfg.dest)}", extract_cmd]
    if not cfg.creates:
        return body
    creates = dq(cfg.creates)
    return [
        f"if [ -e {creates} ]; then",
        f"  echo {sq(f'skip {step_type} because creates exists: {cfg.creates}')}",
        "else",
        *_indent(body),
        "fi",
    ]


@fragment("extract_tar_gz")
def extract_tar_gz_fragment(cfg: ExtractConfig) -> list[str]:
    return _extract_lines(
        "extract_tar_gz", cfg, f"tar -xzf {dq(cfg.src)} -C {dq(cfg.dest)}"
    )


@fragment("extract_zip")
def extract_zip_fragment(cfg: ExtractConfig) -> list[str]:
    return _extract_lines(
        "extract_zip", cfg, f"unzip -o {dq(cfg.src)} -d {dq(cfg.dest)}"
    )


# ── Packages ────────────────────────────────────────────────────


@fragment("rpm_install")
def rpm_install_fragment(cfg: RpmInstallConfig) -> list[str]:
    if not cfg.rpms:
        return ["echo 'rpm_install: no packages listed'"]
    flag = "-Uvh" if cfg.mode.lower() == "upgrade" else "-ivh"
    nodeps = " --nodeps" if cfg.nodeps else ""
    return [
        "for pkg in " + " ".join(dq(rpm) for rpm in cfg.rpms) + "; do",
        f'  rpm {flag}{nodeps} "$pkg"',
        "done",
    ]


# ── Line editing ────────────────────────────────────────────────


@fragment("append_lines")
def append_lines_fragment(cfg: AppendLinesConfig) -> list[str]:
    marker = heredoc_marker(cfg.lines)
    lines = [f"target={dq(cfg.file)}"]
    lines += _backup_lines(cfg.backup, only_if_exists=True)
    lines.append("while IFS= read -r line; do")
    if cfg.unique:
        lines += [
            '  if ! grep -Fqx -- "$line" "$target" 2>/dev/null; then',
            "    printf '%s\\n' \"$line\" >> \"$target\"",
            "  fi",
        ]
    else:
        lines.append("  printf '%s\\n' \"$line\" >> \"$target\"")
    lines.append(f"done <<'{marker}'")
    lines += cfg.lines
    lines.append(marker)
    return lines


@fragment("delete_lines")
def delete_lines_fragment(cfg: DeleteLinesConfig) -> list[str]:
    grep_flag = "-Ev" if cfg.mode.lower() == "regex" else "-Fv"
    # grep exits 1 when every line was removed; only >1 is a real failure
    filter_cmd = f'{{ grep {grep_flag} -- {sq(cfg.match)} "$target" || [ $? -eq 1 ]; }}'
    lines = [f"target={dq(cfg.file)}"]
    lines += _backup_lines(cfg.backup)
    lines += _atomic_replace_lines(filter_cmd)
    return lines


@fragment("replace")
def replace_fragment(cfg: ReplaceConfig) -> list[str]:
    delim = sed_delimiter(cfg.pattern, cfg.replacement)
    if cfg.mode.lower() == "regex":
        pattern = escape_sed_delimiter(cfg.pattern, delim)
        replacement = escape_sed_delimiter(cfg.replacement, delim)
        sed = "sed -r"
    else:
        pattern = escape_sed_literal_pattern(cfg.pattern, delim)
        replacement = escape_sed_replacement(cfg.replacement, delim)
        sed = "sed"
    program = f"s{delim}{pattern}{delim}{replacement}{delim}g"
    lines = [f"target={dq(cfg.file)}"]
    lines += _backup_lines(cfg.backup)
    lines += _atomic_replace_lines(f'{sed} {sq(program)} "$target"')
    return lines


# ── Commands ────────────────────────────────────────────────────


@fragment("run_cmd")
def run_cmd_fragment(cfg: RunCmdConfig) -> list[str]:
    cwd = dq(cfg.cwd) if cfg.cwd else '"$SCRIPT_DIR"'
    return [
        f"(cd {cwd} && {cfg.cmd}",
        ")",
    ]


# ── Services ────────────────────────────────────────────────────


@fragment("service_sysv")
def service_sysv_fragment(cfg: ServiceConfig) -> list[str]:
    return _sysv_lines(cfg.src, cfg.name, cfg.start)


@fragment("service_systemd")
def service_systemd_fragment(cfg: ServiceConfig) -> list[str]:
    return _systemd_lines(cfg.src, cfg.name, cfg.start)


@fragment("auto_service")
def auto_service_fragment(cfg: AutoServiceConfig) -> list[str]:
    # Init system is only known on the target, so the choice is made there
    return [
        "if command -v systemctl >/dev/null 2>&1; then",
        *_indent(_systemd_lines(cfg.systemd_src, cfg.name, cfg.start)),
        "else",
        *_indent(_sysv_lines(cfg.sysv_src, cfg.name, cfg.start)),
        "fi",
    ]
